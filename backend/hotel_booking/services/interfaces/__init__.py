"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notifier import NotificationKind, Notifier

__all__ = ["NotificationKind", "Notifier"]
