from .bot_api import TelegramApiError, TelegramBotConfig, TelegramNotifier

__all__ = [
    "TelegramApiError",
    "TelegramBotConfig",
    "TelegramNotifier",
]
