from __future__ import annotations

import argparse
import asyncio
import json
import sqlite3
from dataclasses import replace
from typing import Sequence

from app import ApplicationFacade, render_run_summary
from domain.models import AppConfig, ExitStatus, RunMode
from domain.ports import ClockPort, IdGeneratorPort, LoggerPort, NotifierPort, ResultLedgerPort, SessionDriverFactory
from domain.services import (
    ApplyWorkflow,
    DebugRunManager,
    LoginService,
    Pacer,
    ReconciliationEngine,
    ReportScrapeWorkflow,
    RunOrchestrator,
)
from domain.utils import mask_value
from infra.browser import PlaywrightSessionDriver
from infra.config import FileSystemConfigProvider
from infra.logs import FileSystemDebugArtifactStore
from infra.notifications import CompositeNotifier, WebhookNotifier
from infra.persistence import JsonFileResultLedger, SQLiteResultLedger
from infra.runtime import StructuredLogger, SystemClock, UuidIdGenerator
from infra.telegram import TelegramBotConfig, TelegramNotifier

_SETUP_ERRORS = (OSError, ValueError, KeyError, TypeError, json.JSONDecodeError, sqlite3.DatabaseError)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="asba-cli")
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Apply for the configured issue, or reconcile results")
    run_p.add_argument("--mode", choices=[m.value for m in RunMode], default=RunMode.APPLY.value)
    run_p.add_argument("--config-dir", default="./config", help="Path to config folder")
    run_p.add_argument("--headless", action="store_true", default=None)
    run_p.add_argument("--no-headless", dest="headless", action="store_false")
    run_p.add_argument(
        "--debug",
        action="store_true",
        help="Capture step screenshots and skip the final submit",
    )

    validate_p = sub.add_parser("validate", help="Check config.json and accounts.json")
    validate_p.add_argument("--mode", choices=[m.value for m in RunMode], default=RunMode.APPLY.value)
    validate_p.add_argument("--config-dir", default="./config")

    accounts_p = sub.add_parser("list-accounts")
    accounts_p.add_argument("--config-dir", default="./config")

    results_p = sub.add_parser("list-results")
    results_p.add_argument("--config-dir", default="./config")
    results_p.add_argument("--account", help="Only show results for this username")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    provider = FileSystemConfigProvider(args.config_dir)

    if args.command == "run":
        return _handle_run(args, provider)

    if args.command == "validate":
        errors = provider.validate(RunMode(args.mode))
        if errors:
            _print_errors(errors)
            return int(ExitStatus.FATAL)
        print(f"Config OK: {len(provider.get_accounts())} account(s) configured")
        return int(ExitStatus.OK)

    if args.command == "list-accounts":
        try:
            facade = ApplicationFacade(accounts=provider.get_accounts())
        except _SETUP_ERRORS as exc:
            print(f"Cannot read accounts: {exc}")
            return int(ExitStatus.FATAL)
        for view in facade.get_accounts():
            issue = view.target_issue_name or "-"
            print(f"{view.username_masked} | {view.dp_name} | {issue} | {view.applied_kitta}")
        return int(ExitStatus.OK)

    if args.command == "list-results":
        return _handle_list_results(args, provider)

    raise SystemExit(f"Unsupported command: {args.command}")


def _handle_run(args: argparse.Namespace, provider: FileSystemConfigProvider) -> int:
    mode = RunMode(args.mode)
    errors = provider.validate(mode)
    if errors:
        _print_errors(errors)
        return int(ExitStatus.FATAL)

    try:
        cfg = provider.get_config()
        accounts = provider.get_accounts()
        cfg = replace(
            cfg,
            headless=cfg.headless if args.headless is None else args.headless,
            debug_mode=cfg.debug_mode or args.debug,
        )
        logger = StructuredLogger(mask_sensitive=cfg.mask_sensitive_logs, log_file=cfg.log_file)
        ledger = build_ledger(cfg)
    except _SETUP_ERRORS as exc:
        print(f"Setup failed: {exc}")
        return int(ExitStatus.FATAL)

    clock = SystemClock()
    print(f"Mode: {mode.value} | Accounts: {len(accounts)} | Debug mode: {'ON' if cfg.debug_mode else 'OFF'}")

    orchestrator = build_orchestrator(
        cfg,
        ledger=ledger,
        logger=logger,
        clock=clock,
        id_generator=UuidIdGenerator(),
        driver_factory=_driver_factory(cfg),
        notifier=build_notifier(cfg, clock),
    )
    try:
        summary = asyncio.run(orchestrator.execute(accounts, mode))
    finally:
        if isinstance(ledger, SQLiteResultLedger):
            ledger.close()

    print(render_run_summary(summary, mode))
    if mode is RunMode.RECONCILE:
        print(f"Results saved in: {cfg.ledger_path}")
    return int(summary.exit_status)


def _handle_list_results(args: argparse.Namespace, provider: FileSystemConfigProvider) -> int:
    try:
        cfg = provider.get_config()
    except _SETUP_ERRORS as exc:
        print(f"Cannot read config: {exc}")
        return int(ExitStatus.FATAL)

    try:
        ledger = build_ledger(cfg)
    except _SETUP_ERRORS as exc:
        print(f"Cannot open results: {exc}")
        return int(ExitStatus.FATAL)

    facade = ApplicationFacade(ledger=ledger)
    tracked = facade.get_tracked_results()
    if args.account:
        tracked = {k: v for k, v in tracked.items() if k == args.account}
    if not tracked:
        print("No tracked results.")
    for username, entry in tracked.items():
        summary = facade.get_allotment_summary(username)
        print(
            f"{mask_value(username)} | updated {entry.last_updated or '-'} | "
            f"{summary.total} application(s), {summary.alloted} alloted, {summary.total_shares} share(s)"
        )
        for record in entry.items:
            alloted = f"{record.alloted_qty} alloted" if record.is_alloted else "-"
            print(f"  {record.company_name} | {record.status or '-'} | applied {record.applied_qty} | {alloted}")
    if isinstance(ledger, SQLiteResultLedger):
        ledger.close()
    return int(ExitStatus.OK)


def build_ledger(cfg: AppConfig) -> ResultLedgerPort:
    if cfg.ledger_backend == "sqlite":
        return SQLiteResultLedger(db_path=cfg.ledger_path)
    return JsonFileResultLedger(cfg.ledger_path)


def build_notifier(cfg: AppConfig, clock: ClockPort) -> NotifierPort | None:
    if not cfg.notification_enabled:
        return None
    targets: list[NotifierPort] = []
    if cfg.notification_webhook_url:
        targets.append(WebhookNotifier(url=cfg.notification_webhook_url, clock=clock))
    if cfg.bot_token and cfg.telegram_chat_id:
        targets.append(TelegramNotifier(TelegramBotConfig(bot_token=cfg.bot_token, chat_id=cfg.telegram_chat_id)))
    if not targets:
        return None
    if len(targets) == 1:
        return targets[0]
    return CompositeNotifier(targets)


def build_orchestrator(
    cfg: AppConfig,
    *,
    ledger: ResultLedgerPort,
    logger: LoggerPort,
    clock: ClockPort,
    id_generator: IdGeneratorPort,
    driver_factory: SessionDriverFactory,
    notifier: NotifierPort | None = None,
    pacer: Pacer | None = None,
) -> RunOrchestrator:
    pacer = pacer or Pacer(min_ms=cfg.action_delay_min_ms, max_ms=cfg.action_delay_max_ms)
    debug_manager = DebugRunManager(FileSystemDebugArtifactStore(base_dir=cfg.artifacts_dir), logger)
    login = LoginService(config=cfg, logger=logger, pacer=pacer)
    engine = ReconciliationEngine(
        ledger=ledger,
        clock=clock,
        logger=logger,
        terminal_statuses=cfg.terminal_statuses,
    )
    workflows = {
        RunMode.APPLY: ApplyWorkflow(
            config=cfg,
            login=login,
            clock=clock,
            logger=logger,
            pacer=pacer,
            debug_manager=debug_manager,
        ),
        RunMode.RECONCILE: ReportScrapeWorkflow(
            config=cfg,
            login=login,
            engine=engine,
            clock=clock,
            logger=logger,
            pacer=pacer,
        ),
    }
    return RunOrchestrator(
        driver_factory=driver_factory,
        workflows=workflows,
        config=cfg,
        clock=clock,
        logger=logger,
        id_generator=id_generator,
        pacer=pacer,
        notifier=notifier,
        debug_manager=debug_manager,
    )


def _driver_factory(cfg: AppConfig) -> SessionDriverFactory:
    return lambda: PlaywrightSessionDriver(cfg)


def _print_errors(errors: Sequence[str]) -> None:
    print("Config validation failed:")
    for err in errors:
        print(f"  - {err}")


if __name__ == "__main__":
    raise SystemExit(main())
