"""
Centralized Exceptions - message authentication layer.
Error taxonomy and structured error handling.
"""

from typing import Dict, Any, Optional


class HeadsUpError(Exception):
    """Base exception for the heads-up channel core."""

    def __init__(self, message: str, error_code: str = "UNKNOWN", details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class EncodingError(HeadsUpError):
    """Malformed or out-of-range field detected before hashing."""

    def __init__(self, message: str = "Encoding failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ENCODING_ERROR", details)


class SignatureFormatError(HeadsUpError):
    """Signature is not a 65-byte recoverable signature with a valid parity byte."""

    def __init__(self, message: str = "Malformed signature", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SIGNATURE_FORMAT", details)


class ChainMismatchError(HeadsUpError):
    """prevHash does not match the expected genesis or predecessor digest."""

    def __init__(self, message: str = "Hash chain mismatch", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CHAIN_MISMATCH", details)


class SenderMismatchError(HeadsUpError):
    """Signature recovered fine but the signer is not the declared sender."""

    def __init__(self, message: str = "Sender mismatch", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SENDER_MISMATCH", details)


class SequenceError(HeadsUpError):
    """seq is not exactly one past the chain head."""

    def __init__(self, message: str = "Sequence out of order", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SEQUENCE_ERROR", details)


class ConfigurationError(HeadsUpError):
    """Configuration error."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIG_ERROR", details)


def sanitize_error_message(message: str) -> str:
    """Sanitize error messages to prevent key material leaking into logs."""
    sensitive_patterns = [
        "private_key", "secret", "mnemonic", "salt", "private",
    ]

    sanitized = message
    for pattern in sensitive_patterns:
        if pattern.lower() in sanitized.lower():
            sanitized = sanitized.replace(pattern, "***")

    return sanitized


def create_structured_error_response(error: Exception) -> Dict[str, Any]:
    """Create structured error dict for logging and for the settlement layer."""
    if isinstance(error, HeadsUpError):
        return {
            "error_type": error.error_code,
            "message": sanitize_error_message(error.message),
            "details": error.details,
            "timestamp": None  # Will be filled by caller
        }
    else:
        return {
            "error_type": "UNKNOWN_ERROR",
            "message": sanitize_error_message(str(error)),
            "details": {},
            "timestamp": None
        }
