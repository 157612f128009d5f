# modules/assistant/results.py

from dataclasses import dataclass, field


@dataclass
class OperationError:
    """
    Expected failure of a tool. `kind` is one of validation, not_found,
    invalid_state, transport or unexpected; `user_message` is already safe
    to show on WhatsApp.
    """
    kind: str
    user_message: str


@dataclass
class PresentationHint:
    """Pre-formatted WhatsApp text the LLM is told to copy verbatim."""
    formatted_text: str


@dataclass
class ToolResult:
    success: bool
    data: dict = field(default_factory=dict)
    error: OperationError | None = None
    hint: PresentationHint | None = None

    @classmethod
    def ok(cls, **data) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, kind: str, user_message: str, **data) -> "ToolResult":
        return cls(success=False, data=data,
                   error=OperationError(kind=kind, user_message=user_message))

    @property
    def media_ref(self) -> str | None:
        return self.data.get("pdf_path") or self.data.get("pdf_url")

    def to_payload(self) -> dict:
        """JSON body handed back to the LLM as the tool message content."""
        payload = {"success": self.success, **self.data}
        if self.error:
            payload["error"] = self.error.user_message
            payload["detalhes"] = "Ocorreu um erro ao processar sua solicitação."
        if self.hint:
            payload["mensagem_formatada"] = self.hint.formatted_text
        return payload


@dataclass
class ToolContext:
    user_id: int
    user_phone: str
    user_name: str | None = None
