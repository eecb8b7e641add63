"""
Local vault encryption using PBKDF2 + AES-GCM.

Keys are derived from the password with PBKDF2-HMAC-SHA256 and only ever used
for AES-256-GCM. Every blocking primitive runs in a worker thread so callers
suspend instead of stalling the event loop.
"""

import asyncio
import base64
import binascii
import hashlib
import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel

from ..errors import DecryptionError, EncryptionError, KeyDerivationError

# PBKDF2 configuration
PBKDF2_ITERATIONS = 100000
PBKDF2_HASH = 'sha256'
KEY_LENGTH_BYTES = 32  # 256 bits
SALT_LENGTH_BYTES = 16

# AES-GCM configuration
ALGORITHM = 'AES-GCM'
IV_LENGTH_BYTES = 12  # 96 bits, recommended for AES-GCM


class EncryptedRecord(BaseModel):
    """Wire shape of one encrypted value. All binary fields are base64."""
    ciphertext: str
    iv: str
    salt: str
    algorithm: str = ALGORITHM


@dataclass(frozen=True)
class DerivedKey:
    """Key material plus the salt it was derived from."""

    key: bytes = field(repr=False)
    salt: bytes

    def cipher(self) -> AESGCM:
        return AESGCM(self.key)


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def _b64decode(data: str) -> bytes:
    return base64.b64decode(data, validate=True)


def _pbkdf2(password: bytes, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac(
        PBKDF2_HASH,
        password,
        salt,
        PBKDF2_ITERATIONS,
        dklen=KEY_LENGTH_BYTES
    )


async def derive_key(password: str, salt: Optional[bytes] = None) -> DerivedKey:
    """
    Derive a 256-bit AES key from password and salt using PBKDF2.

    Args:
        password: The master password (any length, any Unicode)
        salt: Raw salt bytes. A fresh random 16-byte salt is generated when omitted.

    Returns:
        DerivedKey holding the key and the salt actually used

    Raises:
        KeyDerivationError if the password has no UTF-8 encoding (lone surrogates)
    """
    try:
        password_bytes = password.encode('utf-8')
    except UnicodeEncodeError:
        raise KeyDerivationError("Password is not valid Unicode text") from None

    if salt is None:
        salt = os.urandom(SALT_LENGTH_BYTES)
    key = await asyncio.to_thread(_pbkdf2, password_bytes, salt)
    return DerivedKey(key=key, salt=salt)


async def encrypt(plaintext: str, key: DerivedKey, salt: Optional[bytes] = None) -> EncryptedRecord:
    """
    Encrypt plaintext using AES-256-GCM.

    Args:
        plaintext: String to encrypt
        key: Derived key
        salt: Salt to record alongside the ciphertext. Defaults to the key's own salt.

    Returns:
        EncryptedRecord with a fresh IV
    """
    iv = os.urandom(IV_LENGTH_BYTES)
    try:
        data = plaintext.encode('utf-8')
        ciphertext = await asyncio.to_thread(key.cipher().encrypt, iv, data, None)
    except (UnicodeEncodeError, ValueError, TypeError) as e:
        raise EncryptionError(f"Encryption failed: {type(e).__name__}") from None

    return EncryptedRecord(
        ciphertext=_b64encode(ciphertext),
        iv=_b64encode(iv),
        salt=_b64encode(salt if salt is not None else key.salt),
        algorithm=ALGORITHM,
    )


async def decrypt(record: EncryptedRecord, key: DerivedKey) -> str:
    """
    Decrypt an EncryptedRecord using AES-256-GCM.

    Raises:
        DecryptionError if the tag does not verify (wrong key, tampered
        ciphertext or iv) or the record fields are not valid base64
    """
    if record.algorithm != ALGORITHM:
        raise DecryptionError(f"Unsupported algorithm: {record.algorithm}")

    try:
        ciphertext = _b64decode(record.ciphertext)
        iv = _b64decode(record.iv)
    except (binascii.Error, ValueError):
        raise DecryptionError("Encrypted record is not valid base64") from None

    try:
        plaintext = await asyncio.to_thread(key.cipher().decrypt, iv, ciphertext, None)
    except InvalidTag:
        raise DecryptionError("Authentication tag mismatch") from None
    except ValueError as e:
        # Empty or oversized nonce
        raise DecryptionError(str(e)) from None

    try:
        return plaintext.decode('utf-8')
    except UnicodeDecodeError:
        raise DecryptionError("Decrypted payload is not UTF-8") from None


def salt_from_record(record: EncryptedRecord) -> bytes:
    """Raw salt bytes stored with a record."""
    try:
        return _b64decode(record.salt)
    except (binascii.Error, ValueError):
        raise DecryptionError("Encrypted record salt is not valid base64") from None


def hash_string(value: str) -> str:
    """SHA-256 of the UTF-8 bytes, as 64 lowercase hex characters."""
    return hashlib.sha256(value.encode('utf-8')).hexdigest()


async def encrypt_object(data: Any, key: DerivedKey) -> EncryptedRecord:
    """
    Encrypt a Python object as JSON.

    Raises:
        EncryptionError if the object is not JSON-serializable
    """
    try:
        json_str = json.dumps(data)
    except (TypeError, ValueError) as e:
        raise EncryptionError(f"Value is not JSON-serializable: {type(e).__name__}") from None
    return await encrypt(json_str, key)


async def decrypt_object(record: EncryptedRecord, key: DerivedKey) -> Any:
    """Decrypt and parse a JSON object."""
    json_str = await decrypt(record, key)
    try:
        return json.loads(json_str)
    except json.JSONDecodeError:
        raise DecryptionError("Decrypted payload is not JSON") from None
