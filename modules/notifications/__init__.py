# modules/notifications/__init__.py

from .notification_service import NotificationService, run_notification_sweep

__all__ = ["NotificationService", "run_notification_sweep"]
