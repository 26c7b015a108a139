from __future__ import annotations

from typing import Any, Sequence

from domain.models import WorkflowResult
from domain.utils import sanitize

BATCH_TITLE = "MeroShare ASBA Automation Complete"


def batch_payload(results: Sequence[WorkflowResult], timestamp: str) -> dict[str, Any]:
    """Sanitized summary body shared by every notifier."""
    successful = sum(1 for result in results if result.success)
    body = {
        "text": BATCH_TITLE,
        "data": {
            "total": len(results),
            "successful": successful,
            "failed": len(results) - successful,
            "results": [
                {
                    "account": result.account,
                    "status": "SUCCESS" if result.success else "FAILED",
                    "referenceId": result.reference_id,
                    "error": result.error,
                }
                for result in results
            ],
            "timestamp": timestamp,
        },
        "timestamp": timestamp,
    }
    return sanitize(body)


def batch_text(results: Sequence[WorkflowResult]) -> str:
    successful = sum(1 for result in results if result.success)
    lines = [
        BATCH_TITLE,
        f"Total: {len(results)} | Successful: {successful} | Failed: {len(results) - successful}",
    ]
    for result in results:
        if result.success:
            suffix = f" (ref {result.reference_id})" if result.reference_id else ""
            lines.append(f"OK   {result.account}{suffix}")
        else:
            lines.append(f"FAIL {result.account}: {result.error or 'unknown error'}")
    return "\n".join(lines)
