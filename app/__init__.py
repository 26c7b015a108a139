"""Application/UI layer package."""

from .facade import AccountView, ApplicationFacade
from .summary import render_run_summary

__all__ = ["AccountView", "ApplicationFacade", "render_run_summary"]
