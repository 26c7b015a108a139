from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from domain.errors import LedgerError
from domain.models import (
    DEFAULT_TERMINAL_STATUSES,
    AllotmentChange,
    ChangeSet,
    IssueSummary,
    LedgerEntry,
    OutcomeRecord,
)
from domain.ports import ClockPort, LoggerPort, ResultLedgerPort
from domain.utils import normalize_label


@dataclass(frozen=True)
class ScrapeSelection:
    """Listing entries that still need a detail scrape, and reusable prior records."""

    to_scrape: list[IssueSummary] = field(default_factory=list)
    cached: list[OutcomeRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ReconcileOutcome:
    merged: list[OutcomeRecord]
    changes: ChangeSet


class ReconciliationEngine:
    """
    Merges freshly scraped outcomes into the persisted ledger.

    Records are keyed by ``company_name``.  A record is *finalized* once it
    is alloted or carries one of the terminal not-alloted statuses; those
    never change again and are served from the ledger instead of being
    re-scraped.  Everything else is re-checked on every cycle.
    """

    def __init__(
        self,
        *,
        ledger: ResultLedgerPort,
        clock: ClockPort,
        logger: LoggerPort,
        terminal_statuses: Iterable[str] = DEFAULT_TERMINAL_STATUSES,
    ) -> None:
        self._ledger = ledger
        self._clock = clock
        self._logger = logger
        self._terminal = frozenset(normalize_label(s) for s in terminal_statuses)

    def is_terminal_status(self, status: str) -> bool:
        return normalize_label(status) in self._terminal

    def is_finalized(self, record: OutcomeRecord) -> bool:
        return record.is_alloted or self.is_terminal_status(record.status)

    def select_items_needing_scrape(
        self,
        page_items: Sequence[IssueSummary],
        prior_records: Sequence[OutcomeRecord],
    ) -> ScrapeSelection:
        prior_by_name = {record.company_name: record for record in prior_records}
        selection = ScrapeSelection()
        for item in page_items:
            prior = prior_by_name.get(item.name)
            if prior is not None and self.is_finalized(prior):
                selection.cached.append(prior)
            else:
                selection.to_scrape.append(item)
        return selection

    @staticmethod
    def merge(
        prior: Sequence[OutcomeRecord],
        fresh: Sequence[OutcomeRecord],
    ) -> list[OutcomeRecord]:
        by_name = {record.company_name: record for record in prior}
        for record in fresh:
            by_name[record.company_name] = record
        return sorted(by_name.values(), key=lambda record: record.company_name)

    @staticmethod
    def detect_changes(
        prior: Sequence[OutcomeRecord],
        fresh: Sequence[OutcomeRecord],
    ) -> ChangeSet:
        prior_by_name = {record.company_name: record for record in prior}
        new_allotments: list[OutcomeRecord] = []
        updated: list[AllotmentChange] = []
        new_applications: list[OutcomeRecord] = []

        for record in fresh:
            previous = prior_by_name.get(record.company_name)
            if previous is None:
                new_applications.append(record)
                if record.is_alloted:
                    new_allotments.append(record)
            elif record.is_alloted and not previous.is_alloted:
                new_allotments.append(record)
            elif (
                record.is_alloted
                and previous.is_alloted
                and record.alloted_qty != previous.alloted_qty
            ):
                updated.append(AllotmentChange(record=record, previous_qty=previous.alloted_qty))

        return ChangeSet(
            new_allotments=tuple(new_allotments),
            updated_allotments=tuple(updated),
            new_applications=tuple(new_applications),
        )

    def prior_records(self, account_id: str) -> list[OutcomeRecord]:
        entry = self._load().get(account_id)
        return list(entry.items) if entry else []

    def reconcile(self, account_id: str, fresh: Sequence[OutcomeRecord]) -> ReconcileOutcome:
        prior = self.prior_records(account_id)
        return ReconcileOutcome(
            merged=self.merge(prior, fresh),
            changes=self.detect_changes(prior, fresh),
        )

    def persist(self, account_id: str, merged: Sequence[OutcomeRecord]) -> None:
        snapshot = self._load()
        snapshot[account_id] = LedgerEntry(
            last_updated=self._clock.now().isoformat(),
            items=tuple(merged),
        )
        try:
            self._ledger.save(snapshot)
        except Exception as exc:
            self._logger.error("ledger_write_failed", error=str(exc))
            raise LedgerError(f"Failed to save results: {exc}") from exc
        self._logger.info("ledger_saved", tracked=len(merged))

    def _load(self) -> dict[str, LedgerEntry]:
        try:
            return dict(self._ledger.load())
        except Exception as exc:
            self._logger.warning("ledger_read_failed", error=str(exc))
            return {}
