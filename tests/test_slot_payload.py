"""Tests for the slot JSON envelope."""
import base64
import json
from datetime import timedelta

import pytest

from pipeboard.errors import CorruptSlot, EncryptionError, InvalidSlotName
from pipeboard.slot_payload import (
    COMPRESS_THRESHOLD,
    decode_envelope,
    detect_mime,
    encode_slot,
    is_expired,
    open_payload,
    validate_slot_name,
)
from conftest import FIXED_NOW


class TestValidateSlotName:
    """Tests for slot name validation."""

    @pytest.mark.parametrize("name", ["kube", "my-slot", "a.b_c", "_x", "v1.2"])
    def test_accepts_safe_names(self, name):
        validate_slot_name(name)

    @pytest.mark.parametrize("name", ["", ".hidden", "a/b", "../etc", "sp ace", "a\\b"])
    def test_rejects_unsafe_names(self, name):
        with pytest.raises(InvalidSlotName):
            validate_slot_name(name)


class TestDetectMime:
    def test_png(self):
        assert detect_mime(b"\x89PNG\r\n\x1a\n....") == "image/png"

    def test_text(self):
        assert detect_mime("héllo".encode("utf-8")).startswith("text/plain")

    def test_binary(self):
        assert detect_mime(b"\xff\xfe\x00\x81") == "application/octet-stream"


class TestEncodeSlot:
    """Tests for envelope encoding."""

    def test_small_payload_not_compressed(self):
        envelope = json.loads(encode_slot(b"hi", {"hostname": "laptop"}, now=FIXED_NOW))
        assert envelope["compressed"] is False
        assert envelope["encrypted"] is False
        assert envelope["len"] == 2
        assert envelope["hostname"] == "laptop"
        assert base64.b64decode(envelope["data_b64"]) == b"hi"
        assert "expires_at" not in envelope

    def test_large_compressible_payload_is_gzipped(self):
        data = b"a" * (COMPRESS_THRESHOLD * 4)
        envelope = json.loads(encode_slot(data, {}, now=FIXED_NOW))
        assert envelope["compressed"] is True
        assert envelope["len"] == len(data)
        assert len(base64.b64decode(envelope["data_b64"])) < len(data)

    def test_encrypted_payload_hides_plaintext(self):
        raw = encode_slot(b"secret-data", {}, passphrase="pw", now=FIXED_NOW)
        envelope = json.loads(raw)
        assert envelope["encrypted"] is True
        assert b"secret-data" not in base64.b64decode(envelope["data_b64"])

    def test_ttl_stamps_expiry(self):
        payload = decode_envelope(encode_slot(b"x", {}, ttl_days=7, now=FIXED_NOW), "x")
        assert payload.expires_at == FIXED_NOW + timedelta(days=7)


class TestOpenPayload:
    """Tests for envelope decoding."""

    def test_round_trip_with_compression_and_encryption(self):
        data = b"line\n" * 1000
        raw = encode_slot(data, {"hostname": "h"}, passphrase="pw", now=FIXED_NOW)
        out, meta = open_payload(decode_envelope(raw, "s"), "s", "pw")
        assert out == data
        assert meta["hostname"] == "h"
        assert meta["size"] == str(len(data))

    def test_encrypted_without_passphrase(self):
        raw = encode_slot(b"data", {}, passphrase="pw", now=FIXED_NOW)
        with pytest.raises(EncryptionError, match="no passphrase"):
            open_payload(decode_envelope(raw, "s"), "s", None)

    def test_garbage_envelope_is_corrupt(self):
        with pytest.raises(CorruptSlot):
            decode_envelope(b"not json", "s")

    def test_bad_base64_is_corrupt(self):
        payload = decode_envelope(encode_slot(b"x", {}, now=FIXED_NOW), "s")
        payload.data_b64 = "!!!"
        with pytest.raises(CorruptSlot):
            open_payload(payload, "s")


class TestIsExpired:
    def test_stamped_expiry(self):
        payload = decode_envelope(encode_slot(b"x", {}, ttl_days=1, now=FIXED_NOW), "x")
        assert not is_expired(payload, now=FIXED_NOW + timedelta(hours=23))
        assert is_expired(payload, now=FIXED_NOW + timedelta(days=1))

    def test_reader_ttl_applies_to_unstamped_slot(self):
        payload = decode_envelope(encode_slot(b"x", {}, now=FIXED_NOW), "x")
        assert not is_expired(payload, ttl_days=0, now=FIXED_NOW + timedelta(days=365))
        assert is_expired(payload, ttl_days=2, now=FIXED_NOW + timedelta(days=2))
