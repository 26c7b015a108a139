from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from domain.models import DEFAULT_TERMINAL_STATUSES, Account, AppConfig, RunMode

_PIN_PATTERN = re.compile(r"^\d{4}$")
_REQUIRED_ACCOUNT_KEYS = ("username", "password", "dp_name", "transaction_pin")
_ACCOUNT_KEY_LABELS = {
    "username": "username",
    "password": "password",
    "dp_name": "dpName",
    "transaction_pin": "transactionPin",
}
_BOOL_KEYS = ("headless", "debug_mode", "screenshot_on_error", "mask_sensitive_logs", "notification_enabled")
_INT_KEYS = (
    "navigation_timeout_ms",
    "browser_timeout_ms",
    "action_delay_min_ms",
    "action_delay_max_ms",
    "account_delay_min_ms",
    "account_delay_max_ms",
    "viewport_width",
    "viewport_height",
)
_STR_KEYS = ("base_url", "user_agent", "log_file", "ledger_path", "artifacts_dir")
_OPTIONAL_STR_KEYS = ("user_agent", "log_file")
_LEDGER_BACKENDS = ("json", "sqlite")
DEFAULT_KITTA = 10


class FileSystemConfigProvider:
    """Reads config.json and accounts.json from a config directory.

    Every public method re-reads from disk so that edits
    to the JSON files take effect without restarting the app.
    ``config.json`` is optional; ``accounts.json`` is required.
    """

    def __init__(self, config_dir: str) -> None:
        self._config_dir = Path(config_dir)

    def validate(self, mode: RunMode = RunMode.APPLY) -> list[str]:
        errors: list[str] = []
        config_path = self._config_dir / "config.json"
        if config_path.exists():
            config_data = self._load_json_file(config_path, errors)
            if config_data is not None:
                if isinstance(config_data, dict):
                    errors.extend(self._validate_config_formats(config_data))
                else:
                    errors.append("config.json must contain a JSON object.")

        accounts_path = self._config_dir / "accounts.json"
        if not accounts_path.is_file():
            errors.append(f"Missing file: {accounts_path}")
            return errors
        accounts_data = self._load_json_file(accounts_path, errors)
        if accounts_data is not None:
            errors.extend(self._validate_accounts(accounts_data, mode))
        return errors

    @staticmethod
    def _validate_config_formats(data: dict) -> list[str]:
        errors: list[str] = []
        for key in _BOOL_KEYS:
            value = data.get(key)
            if value is not None and not isinstance(value, bool):
                errors.append(f"{key} must be a boolean (true/false), not a string.")

        for key in _INT_KEYS:
            value = data.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors.append(f"{key} must be a non-negative integer.")

        for low_key, high_key in (
            ("action_delay_min_ms", "action_delay_max_ms"),
            ("account_delay_min_ms", "account_delay_max_ms"),
        ):
            low, high = data.get(low_key), data.get(high_key)
            if isinstance(low, int) and isinstance(high, int) and low > high:
                errors.append(f"{low_key} must not exceed {high_key}.")

        base_url = data.get("base_url")
        if base_url is not None and not str(base_url).startswith(("https://", "http://")):
            errors.append("base_url must start with 'https://'.")

        backend = data.get("ledger_backend", "json")
        if backend not in _LEDGER_BACKENDS:
            errors.append(f"ledger_backend must be one of: {', '.join(_LEDGER_BACKENDS)}.")

        statuses = data.get("terminal_statuses")
        if statuses is not None and (
            not isinstance(statuses, list) or not all(isinstance(s, str) and s.strip() for s in statuses)
        ):
            errors.append("terminal_statuses must be a list of non-empty strings.")

        chat_id = data.get("TELEGRAM_CHAT_ID")
        if chat_id not in (None, "") and not str(chat_id).lstrip("-").isdigit():
            errors.append("TELEGRAM_CHAT_ID must be numeric. Send /start to your bot and check the chat ID.")

        webhook = data.get("NOTIFICATION_WEBHOOK_URL")
        if webhook and not str(webhook).startswith(("https://", "http://")):
            errors.append("NOTIFICATION_WEBHOOK_URL must be an http(s) URL.")

        if data.get("notification_enabled") is True:
            has_telegram = bool(data.get("BOT_TOKEN")) and bool(data.get("TELEGRAM_CHAT_ID"))
            if not webhook and not has_telegram:
                errors.append(
                    "notification_enabled requires NOTIFICATION_WEBHOOK_URL or BOT_TOKEN and TELEGRAM_CHAT_ID."
                )
        return errors

    @staticmethod
    def _validate_accounts(data: Any, mode: RunMode) -> list[str]:
        entries, shared_target = _account_entries(data)
        if entries is None:
            return ["accounts.json must be a list of accounts or an object with an 'accounts' list."]
        if not entries:
            return ["accounts.json must contain at least one account."]

        errors: list[str] = []
        for position, raw in enumerate(entries, start=1):
            prefix = f"Account {position}: " if len(entries) > 1 else ""
            if not isinstance(raw, dict):
                errors.append(f"{prefix}must be a JSON object.")
                continue
            account = _normalize_account(raw, shared_target)
            missing = [_ACCOUNT_KEY_LABELS[key] for key in _REQUIRED_ACCOUNT_KEYS if not account[key]]
            if missing:
                errors.append(f"{prefix}Missing required fields: {', '.join(missing)}")
            if account["transaction_pin"] and not _PIN_PATTERN.match(account["transaction_pin"]):
                errors.append(f"{prefix}Transaction PIN must be exactly 4 digits")
            if _parse_kitta(account["applied_kitta"]) <= 0:
                errors.append(f"{prefix}Applied kitta must be a positive number")
            if mode is RunMode.APPLY and not account["target_issue_name"]:
                errors.append(f"{prefix}targetIssueName is required in apply mode")
        return errors

    def get_config(self) -> AppConfig:
        path = self._config_dir / "config.json"
        data: dict[str, Any] = self._read_json("config.json") if path.is_file() else {}
        values: dict[str, Any] = {}
        for key in _BOOL_KEYS:
            if key in data:
                values[key] = bool(data[key])
        for key in _INT_KEYS:
            if key in data:
                values[key] = int(data[key])
        for key in _STR_KEYS:
            if key not in data:
                continue
            if key in _OPTIONAL_STR_KEYS:
                values[key] = str(data[key]) if data[key] else None
            else:
                values[key] = str(data[key])
        if "ledger_backend" in data:
            values["ledger_backend"] = str(data["ledger_backend"])
        values["terminal_statuses"] = tuple(data.get("terminal_statuses") or DEFAULT_TERMINAL_STATUSES)
        values["notification_webhook_url"] = data.get("NOTIFICATION_WEBHOOK_URL") or None
        values["bot_token"] = data.get("BOT_TOKEN") or None
        chat_id = data.get("TELEGRAM_CHAT_ID")
        values["telegram_chat_id"] = str(chat_id) if chat_id not in (None, "") else None
        return AppConfig(**values)

    def get_accounts(self) -> list[Account]:
        entries, shared_target = _account_entries(self._read_json("accounts.json"))
        accounts: list[Account] = []
        for raw in entries or []:
            if not isinstance(raw, dict):
                continue
            account = _normalize_account(raw, shared_target)
            accounts.append(
                Account(
                    username=account["username"],
                    password=account["password"],
                    dp_name=account["dp_name"],
                    transaction_pin=account["transaction_pin"],
                    applied_kitta=_parse_kitta(account["applied_kitta"]),
                    target_issue_name=account["target_issue_name"] or None,
                    crn_number=account["crn_number"],
                )
            )
        return accounts

    # -- internal helpers ---------------------------------------------------

    def _read_json(self, filename: str) -> Any:
        path = self._config_dir / filename
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _load_json_file(path: Path, errors: list[str]) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            errors.append(f"Cannot read {path}: {exc}")
            return None


def _account_entries(data: Any) -> tuple[list[Any] | None, str]:
    """Accounts list plus the shared target issue name, if any."""
    if isinstance(data, list):
        return data, ""
    if isinstance(data, dict) and isinstance(data.get("accounts"), list):
        return data["accounts"], str(data.get("targetIssueName") or "").strip()
    return None, ""


def _normalize_account(raw: dict[str, Any], shared_target: str) -> dict[str, Any]:
    def pick(*keys: str) -> str:
        for key in keys:
            value = raw.get(key)
            if value not in (None, ""):
                return str(value).strip()
        return ""

    kitta = raw.get("appliedKitta", raw.get("kitta"))
    return {
        "username": pick("username"),
        "password": pick("password"),
        "dp_name": pick("dpName", "dp_name"),
        "crn_number": pick("crnNumber", "crn"),
        "transaction_pin": pick("transactionPin", "pin"),
        "applied_kitta": DEFAULT_KITTA if kitta in (None, "") else kitta,
        "target_issue_name": pick("targetIssueName", "issue") or shared_target,
    }


def _parse_kitta(raw: Any) -> int:
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return 0
