# modules/assistant/config.py

import os

# OpenAI model configuration
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4-turbo-preview")
OPENAI_EXTRACTION_MODEL = os.environ.get("OPENAI_EXTRACTION_MODEL", "gpt-4o-mini")
OPENAI_TRANSCRIPTION_MODEL = "whisper-1"
OPENAI_TEMPERATURE = 0.7
OPENAI_MAX_TOKENS = 1000
OPENAI_FOLLOWUP_MAX_TOKENS = 1500
OPENAI_TIMEOUT_SECONDS = float(os.environ.get("OPENAI_TIMEOUT_SECONDS", "45"))
# One retry on transient failures, then the turn fails with the apology
OPENAI_MAX_RETRIES = 1

# Conversation memory
HISTORY_MAX_TURNS = 20
HISTORY_REHYDRATE_MESSAGES = 10
MAX_CONVERSATIONS = int(os.environ.get("ASSISTANT_MAX_CONVERSATIONS", "1000"))

# Dates typed by users are interpreted in this zone
ASSISTANT_TIMEZONE = os.environ.get("ASSISTANT_TIMEZONE", "America/Sao_Paulo")

# Short follow-up questions get a hint to re-read the history
SHORT_QUESTION_MAX_LENGTH = 50
QUESTION_WORDS = ("qual", "quais", "que", "quando", "quanto", "onde", "como")

DEFAULT_LIST_LIMIT = 10
PRIORITY_WEIGHTS = {"urgente": 4, "alta": 3, "normal": 2, "baixa": 1}
