"""
Tests for the AES-256-GCM crypto core and PBKDF2 key derivation.
"""
import os

import pytest

from vido_secrets.exceptions import CiphertextTooShort, DecryptionFailed, InvalidKeySize
from vido_secrets.vault.crypto import (
    KEY_LENGTH,
    MIN_BLOB_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    decrypt,
    derive_key_from_string,
    encrypt,
)


# --- Test Encrypt / Decrypt ---

class TestEncryptDecrypt:
    """Tests for authenticated encryption."""

    @pytest.mark.parametrize("plaintext", [
        b"",
        b"a",
        b"sk-test-123",
        "clé secrète ✓".encode("utf-8"),
        os.urandom(4096),
    ])
    def test_decrypt_returns_plaintext(self, key, plaintext):
        """Test decrypt(encrypt(p)) == p, including the empty string."""
        assert decrypt(encrypt(plaintext, key), key) == plaintext

    def test_blob_layout_size(self, key):
        """Test blob is nonce + ciphertext + tag long."""
        blob = encrypt(b"hello world", key)
        assert len(blob) == NONCE_SIZE + len(b"hello world") + TAG_SIZE

    def test_empty_plaintext_blob_is_28_bytes(self, key):
        """Test an empty plaintext still produces nonce and tag."""
        blob = encrypt(b"", key)
        assert len(blob) == MIN_BLOB_SIZE == 28

    def test_nonce_is_fresh_per_call(self, key):
        """Test two encryptions of the same data differ."""
        first = encrypt(b"same data", key)
        second = encrypt(b"same data", key)
        assert first != second
        assert first[:NONCE_SIZE] != second[:NONCE_SIZE]

    def test_ciphertext_does_not_contain_plaintext(self, key):
        """Test the plaintext is not visible in the blob."""
        blob = encrypt(b"sk-test-123", key)
        assert b"sk-test" not in blob


# --- Test Key Validation ---

class TestKeyValidation:
    """Tests for the 32-byte key requirement."""

    @pytest.mark.parametrize("size", [0, 16, 24, 31, 33, 64])
    def test_encrypt_rejects_bad_key(self, size):
        """Test encrypt fails with InvalidKeySize."""
        with pytest.raises(InvalidKeySize):
            encrypt(b"data", b"k" * size)

    @pytest.mark.parametrize("size", [0, 16, 31, 33])
    def test_decrypt_rejects_bad_key(self, key, size):
        """Test decrypt fails with InvalidKeySize before touching the blob."""
        blob = encrypt(b"data", key)
        with pytest.raises(InvalidKeySize):
            decrypt(blob, b"k" * size)

    def test_invalid_key_size_is_value_error(self):
        """Test InvalidKeySize can be caught as ValueError."""
        with pytest.raises(ValueError):
            encrypt(b"data", b"short")


# --- Test Tamper Detection ---

class TestTamperDetection:
    """Tests for authentication failures."""

    def test_flipping_any_byte_fails(self, key):
        """Test every single-byte modification is detected."""
        blob = encrypt(b"tmdb key value", key)
        for index in range(len(blob)):
            tampered = bytearray(blob)
            tampered[index] ^= 0x01
            with pytest.raises(DecryptionFailed):
                decrypt(bytes(tampered), key)

    def test_wrong_key_fails(self, key):
        """Test decrypting with another key fails."""
        blob = encrypt(b"secret", key)
        with pytest.raises(DecryptionFailed):
            decrypt(blob, os.urandom(KEY_LENGTH))

    def test_wrong_key_and_tampering_look_the_same(self, key):
        """Test both failure causes produce the same message."""
        blob = encrypt(b"secret", key)
        tampered = blob[:-1] + bytes([blob[-1] ^ 0xFF])
        with pytest.raises(DecryptionFailed) as wrong_key:
            decrypt(blob, os.urandom(KEY_LENGTH))
        with pytest.raises(DecryptionFailed) as modified:
            decrypt(tampered, key)
        assert str(wrong_key.value) == str(modified.value)
        assert wrong_key.value.__cause__ is None

    def test_truncated_tag_fails(self, key):
        """Test a blob with a nonce but a partial tag fails authentication."""
        blob = encrypt(b"", key)
        with pytest.raises(DecryptionFailed):
            decrypt(blob[:20], key)

    @pytest.mark.parametrize("size", [0, 1, 11])
    def test_blob_shorter_than_nonce(self, key, size):
        """Test blobs that cannot hold a nonce fail with CiphertextTooShort."""
        with pytest.raises(CiphertextTooShort):
            decrypt(b"\x00" * size, key)


# --- Test Key Derivation ---

class TestDeriveKeyFromString:
    """Tests for PBKDF2 derivation."""

    def test_deterministic(self):
        """Test same input gives same key."""
        assert derive_key_from_string("x") == derive_key_from_string("x")

    def test_input_sensitive(self):
        """Test different inputs give different keys."""
        assert derive_key_from_string("x") != derive_key_from_string("y")

    def test_key_length(self):
        """Test derived key is usable for AES-256."""
        key = derive_key_from_string("operator secret")
        assert len(key) == KEY_LENGTH
        assert decrypt(encrypt(b"ok", key), key) == b"ok"

    def test_empty_input_still_derives(self):
        """Test derivation itself does not reject empty input."""
        assert len(derive_key_from_string("")) == KEY_LENGTH

    def test_surrogate_escaped_input(self):
        """Test undecodable OS bytes are hashed as the raw bytes."""
        key = derive_key_from_string("abc\udcff")
        assert len(key) == KEY_LENGTH
        assert key != derive_key_from_string("abc")
        assert key != derive_key_from_string("abc�")
