from __future__ import annotations

from domain.models import RunMode, RunSummary, WorkflowResult

_RULE = "=" * 64
_THIN_RULE = "-" * 64


def render_run_summary(summary: RunSummary, mode: RunMode) -> str:
    """Human-readable end-of-run report, one block per account."""
    title = "RESULTS SCRAPING SUMMARY" if mode is RunMode.RECONCILE else "EXECUTION SUMMARY"
    lines = [
        _RULE,
        f"  {title}",
        _RULE,
        f"  Total Processed: {len(summary.results)}",
        f"  Successful: {summary.succeeded}",
        f"  Failed: {summary.failed}",
        _THIN_RULE,
    ]
    for result in summary.results:
        lines.extend(_result_lines(result, mode))
    lines.append(_RULE)
    lines.append(f"  Exit status: {int(summary.exit_status)} ({summary.exit_status.name})")
    return "\n".join(lines)


def _result_lines(result: WorkflowResult, mode: RunMode) -> list[str]:
    status = "[OK]" if result.success else "[FAIL]"
    lines = [f"  {status} {result.account} ({result.dp_name})"]
    if not result.success:
        lines.append(f"        Error: {result.error}")
        return lines

    if mode is RunMode.RECONCILE:
        if result.summary is not None:
            lines.append(f"        Total Applications: {result.summary.total}")
            lines.append(f"        Alloted: {result.summary.alloted}")
            lines.append(f"        Total Shares: {result.summary.total_shares}")
        if result.changes is not None and result.changes.new_allotments:
            lines.append(f"        NEW: {len(result.changes.new_allotments)} allotment(s)")
            for record in result.changes.new_allotments:
                lines.append(f"          - {record.company_name}: {record.alloted_qty} kitta")
        return lines

    if result.skipped:
        lines.append(f"        {result.message}")
    if result.reference_id:
        lines.append(f"        Reference: {result.reference_id}")
    if result.details:
        lines.append(f"        Issue: {result.details.get('issue')}, Kitta: {result.details.get('kitta')}")
    return lines
