from __future__ import annotations

from typing import Any, Mapping

from domain.models import LedgerEntry, OutcomeRecord

# OutcomeRecord attribute -> key used in the persisted JSON documents.
_FIELD_KEYS: tuple[tuple[str, str], ...] = (
    ("company_name", "companyName"),
    ("share_type", "type"),
    ("group", "group"),
    ("status", "status"),
    ("is_alloted", "isAlloted"),
    ("applied_qty", "appliedQty"),
    ("alloted_qty", "allotedQty"),
    ("price_per_share", "pricePerShare"),
    ("amount", "amount"),
    ("submitted_date", "submittedDate"),
    ("issue_open_date", "issueOpenDate"),
    ("issue_close_date", "issueCloseDate"),
    ("bank", "bank"),
    ("branch", "branch"),
    ("account_number", "accountNumber"),
    ("min_qty", "minQty"),
    ("max_qty", "maxQty"),
    ("remarks", "remarks"),
    ("scraped_at", "scrapedAt"),
)
_INT_FIELDS = {"applied_qty", "alloted_qty", "min_qty", "max_qty"}
_FLOAT_FIELDS = {"price_per_share", "amount"}


def record_to_dict(record: OutcomeRecord) -> dict[str, Any]:
    return {key: getattr(record, attr) for attr, key in _FIELD_KEYS}


def record_from_dict(raw: Mapping[str, Any]) -> OutcomeRecord | None:
    name = raw.get("companyName")
    if not name:
        return None
    values: dict[str, Any] = {}
    for attr, key in _FIELD_KEYS:
        if key not in raw or raw[key] is None:
            continue
        value = raw[key]
        if attr in _INT_FIELDS:
            value = _as_number(value, int)
        elif attr in _FLOAT_FIELDS:
            value = _as_number(value, float)
        elif attr == "is_alloted":
            value = bool(value)
        elif attr != "scraped_at":
            value = str(value)
        values[attr] = value
    return OutcomeRecord(**values)


def entry_to_dict(entry: LedgerEntry) -> dict[str, Any]:
    return {
        "lastUpdated": entry.last_updated,
        "applications": [record_to_dict(record) for record in entry.items],
    }


def entry_from_dict(raw: Any) -> LedgerEntry | None:
    if not isinstance(raw, Mapping):
        return None
    applications = raw.get("applications") or []
    if not isinstance(applications, list):
        applications = []
    records = [record_from_dict(item) for item in applications if isinstance(item, Mapping)]
    return LedgerEntry(
        last_updated=str(raw.get("lastUpdated") or ""),
        items=tuple(record for record in records if record is not None),
    )


def _as_number(value: Any, kind: type) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError, OverflowError):
        return kind(0)
