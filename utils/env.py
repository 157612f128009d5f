# utils/env.py

import logging
import os

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = ("OPENAI_API_KEY", "EVOLUTION_API_URL", "EVOLUTION_API_KEY")


def is_production() -> bool:
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


def validate_environment(required=REQUIRED_ENV_VARS) -> list[str]:
    """
    Check that the required environment variables are present.

    In production a missing variable aborts startup with OSError; in
    development it only logs a warning so the app can boot with fakes.
    Returns the list of missing names.
    """
    missing = [name for name in required if not os.environ.get(name)]
    if not missing:
        logger.info("✅ Environment variables validated")
        return missing

    if is_production():
        raise OSError(
            f"Missing required environment variables: {', '.join(missing)}")

    for name in missing:
        logger.warning(f"⚠️ {name} is not set; related features will fail")
    return missing
