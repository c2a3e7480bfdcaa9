#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: converter.py
Author: Max Qian <astro_air@126.com>
Version: 1.0

Description:
------------
Safe, thread-safe handle around a native OpenCC converter.

Example:
    >>> from opencc_native import OpenCC, DefaultConfig, generate_static_dictionary
    >>> generate_static_dictionary("dicts", DefaultConfig.TW2SP)
    >>> with OpenCC(Path("dicts") / DefaultConfig.TW2SP) as cc:
    ...     cc.convert("涼風有訊")
    '凉风有讯'
"""

from __future__ import annotations

import ctypes
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol, Union

from loguru import logger

from .configs import DefaultConfig
from .exceptions import (
    ConversionFailedError,
    InputContainsNullError,
    InvalidConfigPathError,
    InvalidUtf8Error,
    NewInstanceFailedError,
)
from .native import INVALID_HANDLE, SIZE_MAX, NativeAPI, load_library

PathLike = Union[str, bytes, "os.PathLike[str]", "os.PathLike[bytes]"]

UNKNOWN_OPEN_ERROR = "Unknown error from OpenCC library"
UNKNOWN_CONVERSION_ERROR = "Unknown conversion error from OpenCC library"


class SupportsWrite(Protocol):
    def write(self, s: str, /) -> object: ...


def _encode_config_path(config_path: PathLike) -> bytes:
    """Encode a path as UTF-8 for opencc_open, rejecting NUL and non-UTF-8 paths."""
    try:
        path = os.fspath(config_path)
    except TypeError as e:
        raise InvalidConfigPathError(config_path, original_error=e) from e

    if isinstance(path, bytes):
        try:
            path.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidConfigPathError(config_path, original_error=e) from e
        encoded = path
    else:
        try:
            # lone surrogates from surrogateescape decoding fail here
            encoded = path.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidConfigPathError(config_path, original_error=e) from e

    if b"\0" in encoded:
        raise InvalidConfigPathError(config_path)
    return encoded


def _encode_input(text: str) -> bytes:
    if "\0" in text:
        raise InputContainsNullError(length=len(text))
    return text.encode("utf-8")


class OpenCC:
    """
    OpenCC converter bound to one JSON configuration.

    The native handle is guarded by a lock, so one instance can be shared
    between threads. Calls on the same instance are serialized; separate
    instances convert in parallel.
    """

    def __init__(self, config_path: PathLike, *, library: Optional[NativeAPI] = None):
        """
        Create a new OpenCC instance from a configuration file.

        Args:
            config_path: Path to an OpenCC JSON config
            library: Native library to use; discovered and loaded when omitted

        Raises:
            InvalidConfigPathError: If the path contains NUL or is not UTF-8
            NewInstanceFailedError: If OpenCC cannot open the configuration
            LibraryNotFoundError: If the native library cannot be loaded
        """
        encoded_path = _encode_config_path(config_path)
        self._library: NativeAPI = library if library is not None else load_library()
        self._config_path = encoded_path.decode("utf-8")
        self._lock = threading.Lock()
        self._handle: Optional[int] = None

        handle = self._library.open(encoded_path)
        if not handle or handle == INVALID_HANDLE:
            message = self._library.last_error() or UNKNOWN_OPEN_ERROR
            logger.debug(f"opencc_open failed for {self._config_path}: {message}")
            raise NewInstanceFailedError(message, config_path=self._config_path)

        self._handle = handle
        logger.debug(f"Opened OpenCC instance for {self._config_path}")

    @classmethod
    def from_config(
        cls,
        config: Union[str, DefaultConfig],
        directory: Union[str, Path],
        *,
        library: Optional[NativeAPI] = None,
    ) -> "OpenCC":
        """
        Write the bundled files for ``config`` into ``directory`` and open it.

        Files already present in ``directory`` are reused.
        """
        from .materializer import generate_static_dictionary

        resolved = DefaultConfig.resolve(config)
        generate_static_dictionary(directory, resolved)
        return cls(Path(directory) / resolved, library=library)

    @property
    def config_path(self) -> str:
        return self._config_path

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._handle is None

    @contextmanager
    def _native_handle(self) -> Iterator[int]:
        with self._lock:
            if self._handle is None:
                raise NewInstanceFailedError(
                    "OpenCC instance is not valid or has been closed.",
                    config_path=self._config_path,
                )
            yield self._handle

    @contextmanager
    def _native_string(self, pointer: int) -> Iterator[int]:
        """Borrow a library-allocated result, freeing it on every exit path."""
        try:
            yield pointer
        finally:
            self._library.free(pointer)

    def _conversion_error(self) -> ConversionFailedError:
        message = self._library.last_error() or UNKNOWN_CONVERSION_ERROR
        logger.debug(f"OpenCC conversion failed: {message}")
        return ConversionFailedError(message, config_path=self._config_path)

    def convert(self, text: str) -> str:
        """
        Convert a string.

        Args:
            text: Text to convert

        Returns:
            The converted text

        Raises:
            InputContainsNullError: If text contains a NUL character
            ConversionFailedError: If the native conversion fails
        """
        data = _encode_input(text)

        with self._native_handle() as handle:
            result = self._library.convert(handle, data)
            if not result:
                raise self._conversion_error()

            with self._native_string(result) as pointer:
                converted = ctypes.string_at(pointer)

        return converted.decode("utf-8", errors="replace")

    def convert_append(self, text: str, output: SupportsWrite) -> int:
        """
        Convert ``text`` and write the result to the end of ``output``.

        Args:
            text: Text to convert
            output: Text stream receiving the result, e.g. io.StringIO

        Returns:
            Number of characters appended

        Raises:
            InputContainsNullError: If text contains a NUL character
            ConversionFailedError: If the native conversion fails
            InvalidUtf8Error: If OpenCC produced malformed UTF-8
        """
        data = _encode_input(text)

        with self._native_handle() as handle:
            # UTF-8 output of a CJK conversion stays within three bytes per input byte
            buffer = ctypes.create_string_buffer(len(data) * 3 + 1)
            size = self._library.convert_into(handle, data, buffer)
            if size == SIZE_MAX:
                raise self._conversion_error()
            raw = buffer.raw[:size]

        if not raw:
            return 0

        try:
            converted = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidUtf8Error(
                original_error=e, config_path=self._config_path
            ) from e

        output.write(converted)
        return len(converted)

    def close(self) -> None:
        """Release the native handle. Safe to call more than once."""
        with self._lock:
            handle, self._handle = self._handle, None
        if handle is not None:
            status = self._library.close(handle)
            logger.debug(f"Closed OpenCC instance for {self._config_path} (status {status})")

    def __enter__(self) -> "OpenCC":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __del__(self) -> None:
        # __init__ may have failed before the handle existed
        if getattr(self, "_handle", None) is None:
            return
        try:
            self.close()
        except Exception:
            pass

    def __repr__(self) -> str:
        state = "closed" if self._handle is None else "open"
        return f"OpenCC(config_path={self._config_path!r}, {state})"
