# modules/assistant/__init__.py

from .orchestrator import AssistantOrchestrator, AssistantReply, conversation_store
from .llm_client import LLMClient, LLMError

__all__ = ["AssistantOrchestrator", "AssistantReply", "conversation_store", "LLMClient", "LLMError"]
