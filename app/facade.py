from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from domain.models import Account, LedgerEntry, OutcomeRecord, ReconcileSummary
from domain.ports import ResultLedgerPort
from domain.utils import mask_value


@dataclass(frozen=True)
class AccountView:
    username_masked: str
    dp_name: str
    target_issue_name: str | None
    applied_kitta: int
    crn_masked: str


class ApplicationFacade:
    """
    UI-facing facade over configured accounts and tracked results.
    """

    def __init__(
        self,
        *,
        ledger: ResultLedgerPort | None = None,
        accounts: Sequence[Account] = (),
    ) -> None:
        self._ledger = ledger
        self._accounts = list(accounts)

    def get_accounts(self) -> Sequence[AccountView]:
        return [
            AccountView(
                username_masked=mask_value(account.username),
                dp_name=account.dp_name,
                target_issue_name=account.target_issue_name,
                applied_kitta=account.applied_kitta,
                crn_masked=self._mask_secret(account.crn_number),
            )
            for account in self._accounts
        ]

    def get_tracked_results(self) -> Mapping[str, LedgerEntry]:
        if self._ledger is None:
            return {}
        return self._ledger.load()

    def get_results_for(self, username: str) -> Sequence[OutcomeRecord]:
        entry = self.get_tracked_results().get(username)
        return list(entry.items) if entry else []

    def get_allotment_summary(self, username: str) -> ReconcileSummary:
        return ReconcileSummary.of(self.get_results_for(username))

    @staticmethod
    def _mask_secret(value: str) -> str:
        if not value:
            return ""
        if len(value) <= 3:
            return "*" * len(value)
        return value[0] + ("*" * (len(value) - 2)) + value[-1]
