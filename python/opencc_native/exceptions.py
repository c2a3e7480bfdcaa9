#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: exceptions.py
Author: Max Qian <astro_air@126.com>
Version: 1.0

Description:
------------
Exception hierarchy for the opencc_native package.

Every failure that crosses the native boundary is mapped to one of these
types. Each exception carries a stable error code and a context dictionary
so callers can log or serialize it without parsing messages.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class OpenCCError(Exception):
    """Base exception for all opencc_native errors."""

    default_message = "OpenCC error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        error_code: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        super().__init__(message or self.default_message)
        self.error_code = error_code or self.__class__.__name__.upper()
        self.original_error = original_error
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to structured dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "error_code": self.error_code,
            "context": dict(self.context),
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={str(self)!r}, error_code={self.error_code!r})"


class InvalidConfigPathError(OpenCCError):
    """The configuration path is not valid UTF-8 or contains NUL bytes."""

    default_message = "The configuration file path contains invalid characters"

    def __init__(self, path: Any = None, **kwargs: Any) -> None:
        super().__init__(error_code="INVALID_CONFIG_PATH", path=repr(path), **kwargs)


class NewInstanceFailedError(OpenCCError):
    """
    The native library could not open the given configuration.

    This usually means the path is wrong, a referenced dictionary is missing
    or the JSON is malformed. ``message`` holds the native diagnostic.
    """

    def __init__(self, message: str, **kwargs: Any) -> None:
        self.native_message = message
        super().__init__(
            f"Failed to create OpenCC instance: {message}",
            error_code="NEW_INSTANCE_FAILED",
            **kwargs,
        )


class InputContainsNullError(OpenCCError):
    """The text to convert contains an embedded NUL character."""

    default_message = "The input string contains an invalid NULL character"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(error_code="INPUT_CONTAINS_NULL", **kwargs)


class ConversionFailedError(OpenCCError):
    """The native library reported a failure while converting."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        self.native_message = message
        super().__init__(
            f"OpenCC conversion failed: {message}",
            error_code="CONVERSION_FAILED",
            **kwargs,
        )


class InvalidUtf8Error(OpenCCError):
    """The native library returned bytes that are not well-formed UTF-8."""

    default_message = "OpenCC returned an invalid UTF-8 sequence"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(error_code="INVALID_UTF8", **kwargs)


class LibraryNotFoundError(OpenCCError):
    """The OpenCC shared library could not be located or loaded."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, error_code="LIBRARY_NOT_FOUND", **kwargs)


class DictionaryError(OpenCCError):
    """Base exception for bundled dictionary errors."""

    pass


class UnsupportedConfigError(DictionaryError, ValueError):
    """The requested configuration is not one of the bundled defaults."""

    def __init__(self, config: Any, **kwargs: Any) -> None:
        self.config = config
        super().__init__(
            f"Unsupported or unknown default config: {config}",
            error_code="UNSUPPORTED_CONFIG",
            config=str(config),
            **kwargs,
        )


class DictionaryPathError(DictionaryError, NotADirectoryError):
    """The output path for dictionaries exists but is not a directory."""

    def __init__(self, path: Any, **kwargs: Any) -> None:
        self.path = path
        super().__init__(
            f"The path '{path}' exists but is not a directory.",
            error_code="DICTIONARY_PATH_NOT_DIRECTORY",
            path=str(path),
            **kwargs,
        )


class MissingDictionaryError(DictionaryError, FileNotFoundError):
    """A registry file is not present in the installed package."""

    def __init__(self, name: str, **kwargs: Any) -> None:
        self.name = name
        super().__init__(
            f"Dictionary file '{name}' is not bundled with this installation; "
            "run opencc_native.bundle_dictionaries() against an OpenCC data directory",
            error_code="MISSING_DICTIONARY",
            name=name,
            **kwargs,
        )
