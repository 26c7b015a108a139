from __future__ import annotations

from typing import Any, Mapping, Sequence

from domain.models import IssueSummary


def issues_from_rows(rows: Sequence[Mapping[str, Any]]) -> list[IssueSummary]:
    """Build listing entries from raw rows, keeping each row's page index."""
    issues: list[IssueSummary] = []
    for index, row in enumerate(rows):
        name = str(row.get("name") or "").strip()
        if not name:
            continue
        issues.append(
            IssueSummary(
                index=index,
                name=name,
                share_type=str(row.get("share_type") or "").strip(),
                group=str(row.get("group") or "").strip(),
                sub_group=str(row.get("sub_group") or "").strip(),
                can_apply=bool(row.get("can_apply", False)),
            )
        )
    return issues


def match_issue(issues: Sequence[IssueSummary], target_name: str) -> IssueSummary | None:
    """
    Find the listing entry that best matches ``target_name``.

    Strategies run from strict to loose and only consider applicable
    entries.  When nothing applicable matches, a non-applicable entry
    whose name overlaps the target is returned so the caller can report
    *why* it cannot proceed.
    """
    target = target_name.strip().lower()
    if not target:
        return None
    applicable = [issue for issue in issues if issue.can_apply]

    for issue in applicable:
        if issue.name.strip().lower() == target:
            return issue
    for issue in applicable:
        if target in issue.name.lower():
            return issue
    for issue in applicable:
        if issue.name.strip().lower() in target:
            return issue

    target_words = [word for word in target.split() if len(word) > 2]
    for issue in applicable:
        issue_words = issue.name.lower().split()
        if any(tw in iw for tw in target_words for iw in issue_words):
            return issue

    for issue in issues:
        name = issue.name.strip().lower()
        if target in name or name in target:
            return issue
    return None
