"""Discord alerts - batched, size-safe alert delivery to Discord webhooks."""

from discord_alerts.alerter import AlertInput, AlertLevel, AlertsClient, LazyAlertsClient

__version__ = "0.1.0"

__all__ = [
    "AlertInput",
    "AlertLevel",
    "AlertsClient",
    "LazyAlertsClient",
    "__version__",
]
