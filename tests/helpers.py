"""Fakes for external services shared by the tests.

These are plain classes and functions, not fixtures; conftest.py wraps the
ones that need to be fixtures.
"""

import json
from types import SimpleNamespace


class FakeGateway:
    """Records what would have been sent through the Evolution API."""

    def __init__(self):
        self.texts = []
        self.media = []
        self.media_urls = []
        self.contacts = []
        self.audio = (b"fake-audio", "audio/ogg")
        self.error = None

    async def send_text(self, to, text):
        if self.error:
            raise self.error
        self.texts.append((to, text))
        return {"key": {"id": f"sent-{len(self.texts)}"}}

    async def send_media(self, to, file_path=None, content=None, caption="",
                         file_name=None, mimetype="application/pdf"):
        if self.error:
            raise self.error
        self.media.append({"to": to, "file_path": file_path, "caption": caption, "file_name": file_name})
        return {}

    async def send_media_url(self, to, url, caption="", file_name=None):
        if self.error:
            raise self.error
        self.media_urls.append({"to": to, "url": url, "caption": caption})
        return {}

    async def download_media(self, message):
        return self.audio

    async def find_contacts(self, name):
        return [c for c in self.contacts if name.lower() in c["nome"].lower()]

def tool_call(name: str, arguments: dict, call_id: str = "call_1"):
    return SimpleNamespace(id=call_id, type="function",
                           function=SimpleNamespace(name=name, arguments=json.dumps(arguments)))

def assistant_message(content=None, tool_calls=None):
    return SimpleNamespace(content=content, tool_calls=tool_calls)

class FakeLLM:
    """Scripted stand-in for LLMClient: queue replies, inspect the prompts."""

    def __init__(self):
        self.completions = []
        self.followups = []
        self.complete_calls = []
        self.followup_calls = []
        self.transcript = ""
        self.extracted = None

    async def complete(self, messages, tools):
        self.complete_calls.append({"messages": messages, "tools": tools})
        item = self.completions.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def continue_with_results(self, messages):
        self.followup_calls.append(messages)
        item = self.followups.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def transcribe(self, audio, mime_type="audio/ogg"):
        if isinstance(self.transcript, Exception):
            raise self.transcript
        return self.transcript

    async def extract_order(self, text):
        return self.extracted

