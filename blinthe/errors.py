"""Error taxonomy shared by the vault and widget layers."""


class BlintheError(Exception):
    """Base class for all Blinthe errors."""


class ValidationError(BlintheError):
    """Credentials or input failed a shape check before any crypto work."""


class CryptoFailure(BlintheError):
    """Key derivation, encryption or decryption failed."""


class EncryptionError(CryptoFailure):
    """Serialization or encryption failed. Never carries plaintext."""


class KeyDerivationError(CryptoFailure):
    """The password could not be turned into key material."""


class DecryptionError(CryptoFailure):
    """Authentication tag did not verify or the record is malformed."""


class ExtractionFailure(BlintheError):
    """No valid widget payload could be recovered from generated text."""

    def __init__(self, candidate_count: int, preview: str, truncated: bool = False):
        self.candidate_count = candidate_count
        self.preview = preview
        self.truncated = truncated
        super().__init__(
            "No valid widget JSON found. Expected {title, description, displayLogic}. "
            f"Found {candidate_count} JSON block(s). "
            f"Preview: {preview}{'...' if truncated else ''}"
        )


class NotFoundError(BlintheError):
    """A widget or version id does not exist."""


class LLMServiceError(BlintheError):
    """The text-generation provider rejected or failed a request."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} API error: {message}")
