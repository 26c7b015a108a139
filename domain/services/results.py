from __future__ import annotations

from typing import Any

from domain.errors import classify
from domain.models import Account, WorkflowResult
from domain.ports import ClockPort
from domain.utils import mask_value


def account_result(account: Account, clock: ClockPort, **fields: Any) -> WorkflowResult:
    """Build a result for ``account`` stamped with the current time."""
    fields.setdefault("success", True)
    return WorkflowResult(
        account=mask_value(account.username),
        dp_name=account.dp_name,
        timestamp=clock.now(),
        **fields,
    )


def failed_result(account: Account, clock: ClockPort, exc: BaseException) -> WorkflowResult:
    return account_result(
        account,
        clock,
        success=False,
        error=str(exc) or exc.__class__.__name__,
        error_kind=classify(exc).value,
    )
