"""
Domain layer package.

This package contains pure business logic models and ports that are
independent of any specific infrastructure or frameworks.
"""

from .errors import (  # noqa: F401
    AuthenticationError,
    AutomationError,
    ErrorKind,
    FormValidationError,
    LedgerError,
    NavigationTimeout,
    SubmissionError,
    TargetNotFoundError,
)
from .models import (  # noqa: F401
    Account,
    AppConfig,
    ChangeSet,
    ExitStatus,
    IssueSummary,
    LedgerEntry,
    OutcomeRecord,
    RunContext,
    RunMode,
    RunSummary,
    WorkflowResult,
)
from .ports import (  # noqa: F401
    AccountWorkflowPort,
    ClockPort,
    DebugArtifactStorePort,
    IdGeneratorPort,
    LoggerPort,
    NotifierPort,
    ResultLedgerPort,
    SessionDriverPort,
)

__all__ = [
    # Models
    "Account",
    "AppConfig",
    "ChangeSet",
    "ExitStatus",
    "IssueSummary",
    "LedgerEntry",
    "OutcomeRecord",
    "RunContext",
    "RunMode",
    "RunSummary",
    "WorkflowResult",
    # Errors
    "AutomationError",
    "AuthenticationError",
    "NavigationTimeout",
    "TargetNotFoundError",
    "FormValidationError",
    "SubmissionError",
    "LedgerError",
    "ErrorKind",
    # Ports
    "SessionDriverPort",
    "ResultLedgerPort",
    "NotifierPort",
    "AccountWorkflowPort",
    "DebugArtifactStorePort",
    "ClockPort",
    "IdGeneratorPort",
    "LoggerPort",
]
