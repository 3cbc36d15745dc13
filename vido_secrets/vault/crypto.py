"""
Vault Crypto Core — Key derivation primitive and authenticated encryption.

- Key derivation: PBKDF2-HMAC-SHA256(input, fixed salt, 100k) → 32-byte key
- Encryption: AES-256-GCM → [nonce 12B][ciphertext][GCM tag 16B]

Security Note:
    Never log plaintext, ciphertext or key values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
    All functions here are stateless and safe to call from multiple threads.
"""
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import CiphertextTooShort, DecryptionFailed, InvalidKeySize

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM authentication tag
KEY_LENGTH = 32  # AES-256
MIN_BLOB_SIZE = NONCE_SIZE + TAG_SIZE

PBKDF2_ITERATIONS = 100_000
# Must stay constant across releases: changing it orphans every stored secret.
KDF_SALT = b"vido-secrets-salt-v1"


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key_from_string(value: str) -> bytes:
    """Derive a 32-byte encryption key from a string using PBKDF2-HMAC-SHA256.

    Deterministic: identical input always yields an identical key. Input
    that came from undecodable OS bytes (surrogate escapes, as found in
    ``os.environ``) is hashed as those original bytes.

    Args:
        value: Operator secret or machine identifier.

    Returns:
        32-byte derived key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=KDF_SALT,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(value.encode("utf-8", "surrogateescape"))


def _check_key(key: bytes) -> None:
    if len(key) != KEY_LENGTH:
        raise InvalidKeySize(
            f"invalid key size: must be {KEY_LENGTH} bytes for AES-256, "
            f"got {len(key)}"
        )


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: bytes, key: bytes) -> bytes:
    """Encrypt plaintext with AES-256-GCM under a fresh random nonce.

    Format: [nonce 12B][ciphertext][GCM tag 16B]

    Args:
        plaintext: Data to encrypt (may be empty).
        key: Raw 32-byte key.

    Returns:
        Encrypted blob, ``len(plaintext) + 28`` bytes long.

    Raises:
        InvalidKeySize: If key is not exactly 32 bytes.
    """
    _check_key(key)
    cipher = AESGCM(key)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, None)
    return nonce + ct


def decrypt(blob: bytes, key: bytes) -> bytes:
    """Decrypt a blob produced by :func:`encrypt`.

    Args:
        blob: Encrypted data in format [nonce 12B][ciphertext + tag].
        key: Raw 32-byte key.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        InvalidKeySize: If key is not exactly 32 bytes.
        CiphertextTooShort: If blob cannot even hold a nonce.
        DecryptionFailed: On a wrong key or any modification of the blob.
    """
    _check_key(key)
    if len(blob) < NONCE_SIZE:
        raise CiphertextTooShort(
            f"ciphertext too short: {len(blob)} bytes (minimum {NONCE_SIZE})"
        )
    cipher = AESGCM(key)
    nonce = blob[:NONCE_SIZE]
    ct = blob[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, None)
    except InvalidTag:
        raise DecryptionFailed() from None
