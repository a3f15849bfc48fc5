"""AES-256-GCM helpers for medical record payloads.

Blob layout (base64): salt(64) | iv(16) | tag(16) | ciphertext. The key is
derived per call with PBKDF2-HMAC-SHA512 from the ``ENCRYPTION_KEY``
passphrase and the random salt.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

DEFAULT_PASSPHRASE = "default-key-replace-in-production"
SALT_BYTES = 64
IV_BYTES = 16
TAG_BYTES = 16
KEY_BYTES = 32
PBKDF2_ITERATIONS = 2145

_HEADER_BYTES = SALT_BYTES + IV_BYTES + TAG_BYTES
_warned_default = False


class DecryptionError(Exception):
    pass


def _passphrase(explicit: str | None) -> str:
    global _warned_default
    if explicit:
        return explicit
    configured = (os.getenv("ENCRYPTION_KEY") or "").strip()
    if configured:
        return configured
    if not _warned_default:
        logger.warning("ENCRYPTION_KEY is not set; using the built-in development passphrase")
        _warned_default = True
    return DEFAULT_PASSPHRASE


def derive_key(passphrase: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=KEY_BYTES,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))


def encrypt_data(text: str, passphrase: str | None = None) -> str:
    salt = os.urandom(SALT_BYTES)
    iv = os.urandom(IV_BYTES)
    key = derive_key(_passphrase(passphrase), salt)
    sealed = AESGCM(key).encrypt(iv, text.encode("utf-8"), None)
    # AESGCM appends the tag; the stored layout keeps it ahead of the ciphertext.
    ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
    return base64.b64encode(salt + iv + tag + ciphertext).decode("ascii")


def decrypt_data(blob: str, passphrase: str | None = None) -> str:
    try:
        raw = base64.b64decode(blob.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, AttributeError) as exc:
        raise DecryptionError("Encrypted payload is not valid base64.") from exc
    if len(raw) < _HEADER_BYTES:
        raise DecryptionError("Encrypted payload is truncated.")

    salt = raw[:SALT_BYTES]
    iv = raw[SALT_BYTES : SALT_BYTES + IV_BYTES]
    tag = raw[SALT_BYTES + IV_BYTES : _HEADER_BYTES]
    ciphertext = raw[_HEADER_BYTES:]
    key = derive_key(_passphrase(passphrase), salt)
    try:
        plain = AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as exc:
        raise DecryptionError("Encrypted payload failed authentication.") from exc
    try:
        return plain.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("Decrypted payload is not UTF-8 text.") from exc
