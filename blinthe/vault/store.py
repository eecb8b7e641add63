"""Encrypted key/value store - encrypt on write, decrypt on read."""

import json
from typing import Any, Optional

from pydantic import ValidationError as RecordShapeError

from ..config import STORAGE_PREFIX
from ..errors import CryptoFailure, EncryptionError
from ..logging import get_logger
from .crypto import EncryptedRecord, decrypt, derive_key, encrypt, salt_from_record
from .storage import StorageBackend

logger = get_logger("vault.store")


class EncryptedStore:
    """
    Password-encrypted values scoped under a namespace prefix.

    A wrong password reads as "no data": get() returns None instead of
    raising, and the failure is logged as a warning.
    """

    def __init__(self, backend: StorageBackend, namespace: str = STORAGE_PREFIX):
        self.backend = backend
        self.namespace = namespace

    def _storage_key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def put(self, key: str, value: Any, password: str) -> None:
        """Serialize, encrypt with a fresh salt and persist `value` under `key`."""
        try:
            json_value = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error("Encryption error for %s: %s", key, type(e).__name__)
            raise EncryptionError("Failed to encrypt data") from None

        try:
            derived = await derive_key(password)
            record = await encrypt(json_value, derived)
        except CryptoFailure as e:
            logger.error("Encryption error for %s: %s", key, e)
            raise EncryptionError("Failed to encrypt data") from None

        self.backend.set_item(self._storage_key(key), record.model_dump_json())

    async def get(self, key: str, password: str) -> Optional[Any]:
        """Return the decrypted value, or None if absent or undecryptable."""
        stored = self.backend.get_item(self._storage_key(key))
        if not stored:
            return None

        try:
            record = EncryptedRecord.model_validate_json(stored)
            derived = await derive_key(password, salt_from_record(record))
            decrypted = await decrypt(record, derived)
            return json.loads(decrypted)
        except (RecordShapeError, CryptoFailure, json.JSONDecodeError) as e:
            logger.warning(
                "Decryption error for %s (%s); treating as absent",
                key, type(e).__name__,
                extra={"storage_key": key},
            )
            return None

    def remove(self, key: str) -> None:
        self.backend.remove_item(self._storage_key(key))

    def clear(self) -> None:
        """Remove every entry under this store's namespace, and nothing else."""
        for storage_key in self.backend.keys():
            if storage_key.startswith(self.namespace):
                self.backend.remove_item(storage_key)

    def list_keys(self) -> list[str]:
        """Logical keys under the namespace, prefix stripped."""
        return [
            storage_key[len(self.namespace):]
            for storage_key in self.backend.keys()
            if storage_key.startswith(self.namespace)
        ]
