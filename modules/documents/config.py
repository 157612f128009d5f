# modules/documents/config.py - Configuration constants for generated documents

import os

# Where generated PDFs are written; served under /temp
PDF_TEMP_DIR = os.environ.get("PDF_TEMP_DIR", os.path.join(os.getcwd(), "temp"))

# Public base URL used to build links to generated PDFs
BASE_URL = os.environ.get("BASE_URL", "http://localhost:3000").rstrip("/")

# Seconds to keep a PDF on disk after it has been sent over WhatsApp
PDF_CLEANUP_DELAY_SECONDS = int(os.environ.get("PDF_CLEANUP_DELAY_SECONDS", "60"))

PDF_FOOTER = "Este documento foi gerado automaticamente pelo sistema OSZap."
