"""Tests for Evolution webhook payload normalization."""

import pytest

from modules.messaging.webhook_normalizer import (InvalidPayloadError, extract_api_key, extract_messages,
                                                  normalize_event_name, parse_envelope, parse_message,
                                                  skip_reason)

NOW = 1_800_000_000


def raw_message(text="oi", jid="5511988887777@s.whatsapp.net", from_me=False, timestamp=NOW, **extra):
    raw = {
        "key": {"id": "ABC123", "remoteJid": jid, "fromMe": from_me},
        "pushName": "João",
        "message": {"conversation": text} if text is not None else {},
        "messageTimestamp": timestamp,
    }
    raw.update(extra)
    return raw


class TestEnvelope:
    @pytest.mark.parametrize("name", ["messages.upsert", "MESSAGES_UPSERT", "/messages-upsert"])
    def test_event_names_are_normalized(self, name):
        assert normalize_event_name(name) == "messages.upsert"

    def test_event_from_body(self):
        envelope = parse_envelope({"event": "messages.upsert", "instance": "OSZap", "data": {"a": 1}})
        assert envelope.event == "messages.upsert"
        assert envelope.instance == "OSZap"
        assert envelope.data == {"a": 1}

    def test_event_from_path(self):
        envelope = parse_envelope({"data": {}}, "messages-upsert")
        assert envelope.event == "messages.upsert"

    def test_payload_fallbacks(self):
        assert parse_envelope({"event": "x", "payload": [1]}).data == [1]
        body = {"event": "connection.update", "state": "open"}
        assert parse_envelope(body).data is body

    def test_missing_event(self):
        with pytest.raises(InvalidPayloadError):
            parse_envelope({"data": {}})

    def test_body_must_be_object(self):
        with pytest.raises(InvalidPayloadError):
            parse_envelope(["not", "an", "object"])


class TestApiKey:
    def test_header_wins(self):
        assert extract_api_key({"apikey": " secret "}, {"apikey": "other"}) == "secret"

    def test_bearer(self):
        assert extract_api_key({"authorization": "Bearer tok"}, {}) == "tok"

    def test_body(self):
        assert extract_api_key({}, {"apiKey": "body-key"}) == "body-key"

    def test_missing(self):
        assert extract_api_key({}, {}) is None


class TestMessages:
    def test_extract_shapes(self):
        msg = raw_message()
        assert extract_messages({"messages": [msg, "junk"]}) == [msg]
        assert extract_messages([msg]) == [msg]
        assert extract_messages(msg) == [msg]
        assert extract_messages({"data": {"messages": [msg]}}) == [msg]
        assert extract_messages("nope") == []

    def test_parse_text(self):
        msg = parse_message(raw_message("Bom dia"))
        assert msg.phone == "5511988887777"
        assert msg.text == "Bom dia"
        assert msg.message_type == "conversation"
        assert msg.message_id == "ABC123"
        assert not msg.is_audio

    def test_parse_extended_text(self):
        raw = raw_message(None, message={"extendedTextMessage": {"text": "link http://x"}})
        assert parse_message(raw).text == "link http://x"

    def test_parse_audio(self):
        raw = raw_message(None, message={"audioMessage": {"seconds": 3}})
        msg = parse_message(raw)
        assert msg.is_audio
        assert msg.text is None

    def test_missing_jid(self):
        with pytest.raises(InvalidPayloadError):
            parse_message({"key": {}, "message": {"conversation": "oi"}})


class TestSkipReason:
    def check(self, raw, **kwargs):
        return skip_reason(parse_message(raw), now=NOW + 10, allowed=kwargs.get("allowed", set()),
                           blocked=kwargs.get("blocked", set()))

    def test_regular_message_is_processed(self):
        assert self.check(raw_message()) is None

    def test_group(self):
        assert self.check(raw_message(jid="120363000000000000@g.us")) == "group"

    def test_broadcast(self):
        assert self.check(raw_message(jid="status@broadcast")) == "broadcast"

    def test_own_message(self):
        assert self.check(raw_message(from_me=True)) == "from_me"

    def test_old_message(self):
        assert self.check(raw_message(timestamp=NOW - 3600)) == "too_old"

    def test_phone_filters(self):
        assert self.check(raw_message(), blocked={"5511988887777"}) == "blocked"
        assert self.check(raw_message(), allowed={"5511000000000"}) == "not_allowed"
        assert self.check(raw_message(), allowed={"5511988887777"}) is None

    def test_unsupported_type(self):
        raw = raw_message(None, message={"imageMessage": {}})
        assert self.check(raw) == "unsupported_type"
