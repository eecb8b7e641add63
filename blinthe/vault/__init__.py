"""Vault module for local, password-encrypted storage and sessions."""

from .crypto import (
    DerivedKey,
    EncryptedRecord,
    derive_key,
    encrypt,
    decrypt,
    encrypt_object,
    decrypt_object,
    hash_string,
)
from .session import AuthResult, Session, SessionManager
from .storage import FileStorage, MemoryStorage, StorageBackend
from .store import EncryptedStore

__all__ = [
    'DerivedKey',
    'EncryptedRecord',
    'derive_key',
    'encrypt',
    'decrypt',
    'encrypt_object',
    'decrypt_object',
    'hash_string',
    'AuthResult',
    'Session',
    'SessionManager',
    'FileStorage',
    'MemoryStorage',
    'StorageBackend',
    'EncryptedStore',
]
