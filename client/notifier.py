"""
User-facing alerts.

The wizard is handed a Notifier rather than reaching for a global alert
dispatcher; LoggingNotifier is the fallback when no UI is attached.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from loguru import logger


class AlertType(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Alert:
    type: AlertType
    message: str
    title: Optional[str] = None


class Notifier(Protocol):
    def notify(self, alert: Alert) -> None:
        ...


class LoggingNotifier:
    def notify(self, alert: Alert) -> None:
        prefix = f"{alert.title}: " if alert.title else ""
        if alert.type == AlertType.ERROR:
            logger.error(f"{prefix}{alert.message}")
        elif alert.type == AlertType.WARNING:
            logger.warning(f"{prefix}{alert.message}")
        else:
            logger.info(f"{prefix}{alert.message}")


class CallbackNotifier:
    """Forwards alerts to a UI callback; logs them when none is set."""

    def __init__(self, callback: Optional[Callable[[Alert], None]] = None):
        self.callback = callback
        self._fallback = LoggingNotifier()

    def notify(self, alert: Alert) -> None:
        if self.callback is None:
            self._fallback.notify(alert)
            return
        self.callback(alert)


def show_error(notifier: Notifier, message: str, title: Optional[str] = None) -> None:
    notifier.notify(Alert(AlertType.ERROR, message, title))


def show_warning(notifier: Notifier, message: str, title: Optional[str] = None) -> None:
    notifier.notify(Alert(AlertType.WARNING, message, title))
