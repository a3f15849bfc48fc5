from __future__ import annotations

import base64

import pytest

from mnemosyne_records.encryption import (
    IV_BYTES,
    SALT_BYTES,
    TAG_BYTES,
    DecryptionError,
    decrypt_data,
    encrypt_data,
)


@pytest.mark.parametrize("plaintext", ["", "chest pain for 3 days", "fièvre et toux 🤒 ज्वर"])
def test_encrypt_round_trips_text(monkeypatch, plaintext):
    monkeypatch.setenv("ENCRYPTION_KEY", "unit-test-key")
    blob = encrypt_data(plaintext)
    assert decrypt_data(blob) == plaintext


def test_blob_layout_and_random_salt(monkeypatch):
    monkeypatch.setenv("ENCRYPTION_KEY", "unit-test-key")
    first = encrypt_data("same input")
    second = encrypt_data("same input")
    assert first != second
    raw = base64.b64decode(first)
    assert len(raw) == SALT_BYTES + IV_BYTES + TAG_BYTES + len("same input".encode("utf-8"))


def test_tampered_ciphertext_is_rejected(monkeypatch):
    monkeypatch.setenv("ENCRYPTION_KEY", "unit-test-key")
    raw = bytearray(base64.b64decode(encrypt_data("sensitive journey")))
    raw[-1] ^= 0x01
    with pytest.raises(DecryptionError):
        decrypt_data(base64.b64encode(bytes(raw)).decode("ascii"))


def test_wrong_passphrase_is_rejected():
    blob = encrypt_data("sensitive journey", passphrase="right-key")
    with pytest.raises(DecryptionError):
        decrypt_data(blob, passphrase="wrong-key")


def test_malformed_blobs_are_rejected():
    with pytest.raises(DecryptionError):
        decrypt_data("not base64 at all!")
    with pytest.raises(DecryptionError):
        decrypt_data(base64.b64encode(b"short").decode("ascii"))


def test_default_passphrase_used_when_unset(monkeypatch):
    monkeypatch.delenv("ENCRYPTION_KEY", raising=False)
    blob = encrypt_data("fallback key")
    assert decrypt_data(blob, passphrase="default-key-replace-in-production") == "fallback key"
