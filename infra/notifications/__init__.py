from .payload import batch_payload, batch_text
from .webhook_notifier import CompositeNotifier, NotificationError, WebhookNotifier

__all__ = [
    "batch_payload",
    "batch_text",
    "CompositeNotifier",
    "NotificationError",
    "WebhookNotifier",
]
