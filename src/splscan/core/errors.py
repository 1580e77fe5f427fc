"""
Structured error types for splscan.

Every failure the pipeline can surface is a ``SplscanError`` carrying a
category, a retry flag and structured context. Stages decide what to do
with an error by its type: per-item failures inside a batch are counted and
dropped, stage-level failures propagate to the caller, and only transport
failures are ever retried.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       SplscanError                           │
        │  (category, retryable, context, cause)                       │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  DecodeError          TransportError      SubmitError        │
        │  (PARSE)              (NETWORK, retry)    (SUBMISSION)       │
        │       │                                        │             │
        │  MalformedPrimary                         SubmissionRejected │
        │  MalformedSecondary                                          │
        │                                                              │
        │  PersistenceError     ResolutionExhausted  ConfigError       │
        │  (STORAGE)            (INTERNAL)           (CONFIG)          │
        │       │                                        │             │
        │  ArtifactMissing                          MissingConfigError │
        │  ArtifactCorrupt                                             │
        │  ArtifactUnwritable                                          │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = TransportError("getAccountInfo timed out")
    >>> error.retryable
    True
    >>> error.with_context(endpoint="https://api.mainnet-beta.solana.com").to_dict()["context"]
    {'endpoint': 'https://api.mainnet-beta.solana.com'}

    >>> MalformedSecondary("name exceeds 32 bytes").retryable
    False

Tags:
    error-handling, exception-hierarchy, retry-logic, splscan
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    NETWORK = "NETWORK"           # RPC transport, confirmation timeouts
    STORAGE = "STORAGE"           # Stage artifacts on disk
    PARSE = "PARSE"               # Account payload decoding
    SUBMISSION = "SUBMISSION"     # Transaction rejected by the ledger
    CONFIG = "CONFIG"             # Missing endpoint, keypair, settings
    INTERNAL = "INTERNAL"         # Unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover what the pipeline knows at the failure site; anything
    else goes into ``metadata``. ``to_dict()`` drops unset fields so log
    records stay small.

    Attributes:
        stage: Pipeline stage name (``mints``, ``accounts`` ...)
        address: Account address involved, base58
        endpoint: RPC endpoint URL
        path: Artifact path on disk
        metadata: Additional key-value pairs
    """

    stage: str | None = None
    address: str | None = None
    endpoint: str | None = None
    path: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["stage", "address", "endpoint", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SplscanError(Exception):
    """
    Base exception for all splscan errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override either per instance. Passing ``cause=`` chains the original
    exception so tracebacks keep the root failure.

    Examples:
        >>> try:
        ...     raise ConnectionError("DNS lookup failed")
        ... except ConnectionError as e:
        ...     error = TransportError("RPC unreachable", cause=e)
        >>> error.cause
        ConnectionError('DNS lookup failed')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SplscanError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ArtifactMissing("no mint artifact").with_context(
                stage="mints", path="./mint_info.json"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DECODING
# =============================================================================


class DecodeError(SplscanError):
    """Account payload could not be decoded. Never retryable: the bytes won't change."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


class MalformedPrimary(DecodeError):
    """Mint account payload is malformed."""


class MalformedSecondary(DecodeError):
    """Metadata account payload is malformed."""


class ResolutionExhausted(SplscanError):
    """No bump seed in [0, 255] produced an off-curve derived address."""

    default_category = ErrorCategory.INTERNAL
    default_retryable = False


# =============================================================================
# NETWORK / SUBMISSION
# =============================================================================


class TransportError(SplscanError):
    """
    RPC transport or confirmation failure.

    Retryable by default. Read paths surface it immediately (re-scanning is
    cheap); only the mutation submitter acts on the flag.
    """

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class SubmitError(SplscanError):
    """Mutation could not be applied, either rejected or out of attempts."""

    default_category = ErrorCategory.SUBMISSION
    default_retryable = False

    def __init__(self, message: str, *, attempts: int = 0, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.attempts = attempts

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.attempts:
            result["attempts"] = self.attempts
        return result


class SubmissionRejected(SubmitError):
    """The ledger rejected the transaction (already verified, not a creator ...)."""


# =============================================================================
# PERSISTENCE
# =============================================================================


class PersistenceError(SplscanError):
    """Stage artifact missing, corrupt or unwritable."""

    default_category = ErrorCategory.STORAGE
    default_retryable = False


class ArtifactMissing(PersistenceError):
    """No artifact exists for the requested stage."""


class ArtifactCorrupt(PersistenceError):
    """Artifact exists but does not parse as the stage's record type."""


class ArtifactUnwritable(PersistenceError):
    """Artifact could not be written."""


# =============================================================================
# CONFIGURATION
# =============================================================================


class ConfigError(SplscanError):
    """Configuration error. Never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SplscanError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SplscanError",
    "DecodeError",
    "MalformedPrimary",
    "MalformedSecondary",
    "ResolutionExhausted",
    "TransportError",
    "SubmitError",
    "SubmissionRejected",
    "PersistenceError",
    "ArtifactMissing",
    "ArtifactCorrupt",
    "ArtifactUnwritable",
    "ConfigError",
    "MissingConfigError",
    "is_retryable",
]
