"""
Domain services.

These services orchestrate higher-level workflows while depending only on
domain models and ports so that infrastructure and UI layers can remain thin.
"""

from .apply_workflow import ApplyWorkflow, extract_reference, parse_int
from .debug import DebugRunManager
from .issue_matching import issues_from_rows, match_issue
from .login import LoginService
from .orchestrator import RunOrchestrator
from .pacing import Pacer
from .reconciliation import ReconcileOutcome, ReconciliationEngine, ScrapeSelection
from .report_workflow import ReportScrapeWorkflow, build_outcome_record
from .results import account_result, failed_result

__all__ = [
    "ApplyWorkflow",
    "extract_reference",
    "parse_int",
    "DebugRunManager",
    "issues_from_rows",
    "match_issue",
    "LoginService",
    "RunOrchestrator",
    "Pacer",
    "ReconcileOutcome",
    "ReconciliationEngine",
    "ScrapeSelection",
    "ReportScrapeWorkflow",
    "build_outcome_record",
    "account_result",
    "failed_result",
]
