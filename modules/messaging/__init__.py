# modules/messaging/__init__.py

from .evolution_client import EvolutionClient, GatewayError, GatewayUnavailableError, get_evolution_client
from .webhook_normalizer import InboundMessage, InvalidPayloadError, WebhookEnvelope

__all__ = [
    "EvolutionClient",
    "GatewayError",
    "GatewayUnavailableError",
    "get_evolution_client",
    "InboundMessage",
    "InvalidPayloadError",
    "WebhookEnvelope",
]
