# api/health.py

import logging
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
def health_check():
    """Root health check used by load balancers"""
    logger.debug("Health check requested")
    return "✅ OSZap API is running."


@router.get("/health")
def detailed_health():
    logger.debug("Detailed health check requested")
    return {"status": "ok", "service": "oszap", "timestamp": utcnow().isoformat() + "Z"}
