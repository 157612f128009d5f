# modules/notifications/config.py - Configuration constants for scheduled notifications

import os

# How often the sweeper looks for due notifications
NOTIFICATION_SWEEP_SECONDS = int(os.environ.get("NOTIFICATION_SWEEP_SECONDS", "30"))

# Rows delivered per sweep
NOTIFICATION_BATCH_SIZE = 50

# After this many failed attempts a notification is parked as 'erro'
MAX_ATTEMPTS = 3
RETRY_DELAY_MINUTES = 5

DEFAULT_TRIGGER_TITLE = "Notificação Automática"
