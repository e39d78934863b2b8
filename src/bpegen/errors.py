"""Custom exception hierarchy for bpegen tokenization and generation errors."""

import regex as re

from .types import Token


class BpeGenError(Exception):
    """Base exception for all bpegen errors."""


class ModelLoadError(BpeGenError):
    """Raised when loading vocabulary, merge rules or a model fails."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        extra = " "
        if path:
            extra += f"(path: {path}) "
        super().__init__(message + extra)
        self.path = path


class VocabularyError(BpeGenError):
    """Raised when vocabulary operations fail."""

    def __init__(
        self,
        message: str,
        *,
        invalid_tok: Token | str | None = None,
    ) -> None:
        """Initialize with an optional offending token appended to the message."""
        extra = " "
        if invalid_tok is not None:
            extra += f"(invalid token: {invalid_tok!r}) "
        super().__init__(message + extra)
        self.invalid_tok = invalid_tok


class PatternError(BpeGenError):
    """Raised when compiling and/or validating regex patterns."""

    def __init__(
        self,
        message: str,
        *,
        pattern: str | None = None,
        regex_err: re.error | None = None,
    ) -> None:
        """
        Initialize PatternError with pattern details.

        Args:
            message: Error message.
            pattern: The regex pattern that failed.
            regex_err: The underlying regex error from the regex library.
        """
        extra = " "
        if pattern:
            extra += f"(pattern: {pattern!r}) "
        if regex_err:
            extra += f"(reason: {regex_err}) "
        super().__init__(message + extra)
        self.pattern = pattern
        self.regex_err = regex_err


class ConfigError(BpeGenError):
    """Raised when a generation configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: object = None,
    ) -> None:
        extra = " "
        if field:
            extra += f"(field: {field}) (got {value!r}) "
        super().__init__(message + extra)
        self.field = field
        self.value = value


class GenerationError(BpeGenError):
    """Raised when text generation cannot start."""
