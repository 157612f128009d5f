# modules/messaging/evolution_client.py

import base64
import logging
import os

import httpx

from .config import (EVOLUTION_API_URL, EVOLUTION_API_KEY,
                     EVOLUTION_INSTANCE_NAME, EVOLUTION_TIMEOUT_SECONDS)
from .phone import to_jid

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """The WhatsApp gateway answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class GatewayUnavailableError(GatewayError):
    """The WhatsApp gateway could not be reached (refused, DNS, timeout)."""


class EvolutionClient:
    """
    Async wrapper around the Evolution API REST endpoints used by the
    assistant. Every call is a single attempt bounded by the client timeout.
    """

    def __init__(self,
                 base_url: str | None = None,
                 api_key: str | None = None,
                 instance_name: str | None = None,
                 timeout: float = EVOLUTION_TIMEOUT_SECONDS):
        self.base_url = base_url or EVOLUTION_API_URL
        self.instance_name = instance_name or EVOLUTION_INSTANCE_NAME
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "apikey": api_key if api_key is not None else EVOLUTION_API_KEY,
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def _request(self, method: str, path: str, *, params=None, json_body=None):
        try:
            response = await self._client.request(method,
                                                  path,
                                                  params=params,
                                                  json=json_body)
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            logger.error(
                f"❌ Evolution API unreachable at {self.base_url}: {type(exc).__name__}")
            raise GatewayUnavailableError(
                f"Evolution API unreachable at {self.base_url}") from exc
        except httpx.HTTPError as exc:
            raise GatewayError(f"Evolution API request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                f"❌ Evolution API {method} {path} -> {response.status_code}: {response.text[:300]}")
            raise GatewayError(
                f"Evolution API error {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        return response.json()

    async def send_text(self, to: str, text: str) -> dict:
        """Send a plain text message; `to` may be a phone or a JID."""
        result = await self._request(
            "POST",
            f"/message/sendText/{self.instance_name}",
            json_body={"number": to_jid(to), "text": text},
        )
        logger.info(f"📤 WhatsApp text sent to {to_jid(to)}")
        return result

    async def send_media(self,
                         to: str,
                         file_path: str | None = None,
                         content: bytes | None = None,
                         caption: str = "",
                         file_name: str | None = None,
                         mimetype: str = "application/pdf") -> dict:
        """
        Send a document. Accepts a path on disk or raw bytes; the file is
        uploaded base64-encoded.
        """
        if content is None:
            if not file_path:
                raise ValueError("send_media needs file_path or content")
            with open(file_path, "rb") as fh:
                content = fh.read()

        file_name = file_name or (os.path.basename(file_path) if file_path else "documento.pdf")
        result = await self._request(
            "POST",
            f"/message/sendMedia/{self.instance_name}",
            json_body={
                "number": to_jid(to),
                "mediatype": "document",
                "mimetype": mimetype,
                "media": base64.b64encode(content).decode("ascii"),
                "fileName": file_name,
                "caption": caption,
            },
        )
        logger.info(f"📤 WhatsApp document {file_name} sent to {to_jid(to)}")
        return result

    async def send_media_url(self, to: str, url: str, caption: str = "",
                             file_name: str | None = None) -> dict:
        """Send a document that the gateway downloads from a public URL."""
        return await self._request(
            "POST",
            f"/message/sendMedia/{self.instance_name}",
            json_body={
                "number": to_jid(to),
                "mediatype": "document",
                "media": url,
                "fileName": file_name or url.rsplit("/", 1)[-1] or "anexo",
                "caption": caption,
            },
        )

    async def download_media(self, message: dict) -> tuple[bytes, str]:
        """
        Fetch the binary of an inbound media message (audio notes).
        Returns (bytes, mimetype).
        """
        result = await self._request(
            "POST",
            f"/chat/getBase64FromMediaMessage/{self.instance_name}",
            json_body={"message": {"key": message.get("key", {})}, "convertToMp4": False},
        )
        encoded = result.get("base64") or ""
        if not encoded:
            raise GatewayError("Evolution API returned no media content")
        return base64.b64decode(encoded), result.get("mimetype") or "audio/ogg"

    async def find_contacts(self, name: str) -> list[dict]:
        """Search the WhatsApp address book of the instance by name."""
        result = await self._request(
            "POST",
            f"/chat/findContacts/{self.instance_name}",
            json_body={"where": {}},
        )
        contacts = result if isinstance(result, list) else result.get("contacts", [])
        needle = name.strip().lower()
        matches = []
        for contact in contacts:
            contact_name = contact.get("pushName") or contact.get("name") or ""
            jid = contact.get("remoteJid") or contact.get("id") or ""
            if needle and needle in contact_name.lower() and not jid.endswith("@g.us"):
                matches.append({"nome": contact_name, "jid": jid})
        return matches

    async def aclose(self):
        await self._client.aclose()


_client: EvolutionClient | None = None


def get_evolution_client() -> EvolutionClient:
    """Process-wide client, created lazily."""
    global _client
    if _client is None:
        _client = EvolutionClient()
    return _client
