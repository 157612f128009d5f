# modules/leads/config.py

import os

# Landing page anti-spam: requests per window per client IP
LEADS_RATE_LIMIT = int(os.environ.get("LEADS_RATE_LIMIT", "5"))
LEADS_RATE_WINDOW_SECONDS = float(os.environ.get("LEADS_RATE_WINDOW_SECONDS", "60"))

MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255
MAX_FEEDBACK_LENGTH = 5000

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

# Phones shorter than this are not trusted for the welcome message
MIN_PHONE_DIGITS = 10
COUNTRY_CODE = "55"

DEFAULT_LIST_LIMIT = 50
