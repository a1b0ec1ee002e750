"""Tests for passphrase-based AES-256-GCM encryption."""
import pytest

from pipeboard.crypto import NONCE_SIZE, SALT_SIZE, TAG_SIZE, decrypt, derive_key, encrypt
from pipeboard.errors import EncryptionError


class TestRoundTrip:
    """Tests that encrypt and decrypt are inverse."""

    def test_decrypt_recovers_plaintext(self):
        """Test decrypt(encrypt(d, p), p) == d."""
        blob = encrypt(b"secret-data", "hunter2")
        assert decrypt(blob, "hunter2") == b"secret-data"

    def test_empty_plaintext_round_trips(self):
        """Test that an empty buffer still encrypts and decrypts."""
        assert decrypt(encrypt(b"", "pw"), "pw") == b""

    def test_blob_layout(self):
        """Test blob is salt || nonce || ciphertext with tag."""
        data = b"x" * 10
        blob = encrypt(data, "pw")
        assert len(blob) == SALT_SIZE + NONCE_SIZE + len(data) + TAG_SIZE

    def test_fresh_salt_and_nonce_each_call(self):
        """Test that encrypting the same data twice gives different blobs."""
        assert encrypt(b"same", "pw") != encrypt(b"same", "pw")

    def test_derive_key_is_deterministic(self):
        """Test same passphrase and salt give the same 32-byte key."""
        salt = b"s" * SALT_SIZE
        assert derive_key("pw", salt) == derive_key("pw", salt)
        assert len(derive_key("pw", salt)) == 32


class TestFailures:
    """Tests that every failure is an EncryptionError."""

    def test_wrong_passphrase(self):
        """Test that a wrong passphrase fails instead of returning garbage."""
        blob = encrypt(b"secret-data", "right")
        with pytest.raises(EncryptionError, match="wrong passphrase"):
            decrypt(blob, "wrong")

    @pytest.mark.parametrize(
        "offset",
        [
            0,  # salt
            SALT_SIZE - 1,
            SALT_SIZE,  # nonce
            SALT_SIZE + NONCE_SIZE - 1,
            SALT_SIZE + NONCE_SIZE,  # ciphertext body
            SALT_SIZE + NONCE_SIZE + 5,
            -TAG_SIZE,  # tag
            -1,
        ],
    )
    @pytest.mark.parametrize("bit", [0x01, 0x80])
    def test_tampered_blob(self, offset, bit):
        """Test that flipping a bit anywhere in the blob is detected."""
        blob = bytearray(encrypt(b"secret-data", "pw"))
        blob[offset] ^= bit
        with pytest.raises(EncryptionError):
            decrypt(bytes(blob), "pw")

    def test_truncated_blob(self):
        """Test that a blob shorter than salt+nonce+tag is rejected."""
        with pytest.raises(EncryptionError, match="too short"):
            decrypt(b"\x00" * (SALT_SIZE + NONCE_SIZE), "pw")

    @pytest.mark.parametrize("func,arg", [(encrypt, b"data"), (decrypt, b"\x00" * 64)])
    def test_empty_passphrase(self, func, arg):
        """Test that an empty passphrase is refused both ways."""
        with pytest.raises(EncryptionError, match="empty"):
            func(arg, "")
