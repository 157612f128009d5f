# utils/messaging.py

import logging

from modules.messaging.evolution_client import GatewayError, get_evolution_client

logger = logging.getLogger(__name__)


async def send_message(to_number: str, message: str, client=None) -> bool:
    """
    Best-effort WhatsApp text send for fire-and-forget notices (lead
    welcomes). Failures are logged and reported as False, never raised.
    """
    client = client or get_evolution_client()
    try:
        await client.send_text(to_number, message)
        logger.info(f"📤 Sent WhatsApp to {to_number}")
        return True
    except GatewayError as e:
        logger.error(f"❌ Failed to send WhatsApp to {to_number}: {e}",
                     exc_info=True)
        return False
