"""
User-visible notifications (toasts).
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ToastVariant(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


@dataclass
class Toast:
    """A transient, non-fatal message for the user."""

    title: str
    message: str
    variant: ToastVariant = ToastVariant.INFO


class Notifier:
    """Collects toasts for whatever front end renders them."""

    def __init__(self) -> None:
        self.toasts: list[Toast] = []

    def notify(self, title: str, message: str, variant: ToastVariant = ToastVariant.INFO) -> Toast:
        toast = Toast(title=title, message=message, variant=variant)
        self.toasts.append(toast)
        logger.debug(f"Toast [{variant.value}] {title}: {message}")
        return toast

    def success(self, title: str, message: str) -> Toast:
        return self.notify(title, message, ToastVariant.SUCCESS)

    def warning(self, title: str, message: str) -> Toast:
        return self.notify(title, message, ToastVariant.WARNING)

    def error(self, title: str, message: str) -> Toast:
        return self.notify(title, message, ToastVariant.ERROR)

    @property
    def last(self) -> Toast | None:
        return self.toasts[-1] if self.toasts else None

    def clear(self) -> None:
        self.toasts.clear()
