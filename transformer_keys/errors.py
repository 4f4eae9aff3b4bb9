"""Error taxonomy for transformer key provisioning.

None of these errors may carry private key material in their message.
"""

from __future__ import annotations


class TransformerKeysError(Exception):
    """Base class for every error raised by this package."""
    pass


class ConfigurationError(TransformerKeysError):
    """Unknown transformer name or unusable settings. Not retryable."""
    pass


class ProviderError(TransformerKeysError):
    """The custodial key service (or another upstream) failed or timed out."""
    pass


class DecodeError(TransformerKeysError):
    """A public-key envelope or point could not be decoded."""
    pass


class PersistenceError(TransformerKeysError):
    """Reading, parsing or writing a JSON document failed."""
    pass
