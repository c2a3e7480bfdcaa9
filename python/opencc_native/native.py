#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: native.py
Author: Max Qian <astro_air@126.com>
Version: 1.0

Description:
------------
ctypes declarations for the OpenCC C API.

Only the six functions of the ``opencc.h`` C interface are used:

    opencc_t opencc_open(const char* configFileName);
    int opencc_close(opencc_t opencc);
    char* opencc_convert_utf8(opencc_t opencc, const char* input, size_t length);
    size_t opencc_convert_utf8_to_buffer(opencc_t opencc, const char* input,
                                         size_t length, char* output);
    void opencc_convert_utf8_free(char* str);
    const char* opencc_error(void);
"""

from __future__ import annotations

import ctypes
import ctypes.util
import os
import sys
from functools import lru_cache
from typing import Optional, Protocol

from loguru import logger

from .discovery import LibraryInfo, LibraryLocator
from .exceptions import LibraryNotFoundError
from .settings import LibrarySettings

# opencc_open returns (opencc_t)-1 on failure
INVALID_HANDLE = ctypes.c_void_p(-1).value
# opencc_convert_utf8_to_buffer returns (size_t)-1 on failure
SIZE_MAX = ctypes.c_size_t(-1).value


class NativeAPI(Protocol):
    """Interface the converter handle needs from the native library."""

    def open(self, config_path: bytes) -> Optional[int]: ...

    def close(self, handle: int) -> int: ...

    def convert(self, handle: int, data: bytes) -> Optional[int]: ...

    def convert_into(self, handle: int, data: bytes, output: ctypes.Array) -> int: ...

    def free(self, pointer: int) -> None: ...

    def last_error(self) -> Optional[str]: ...


def _declare(lib: ctypes.CDLL) -> None:
    lib.opencc_open.argtypes = [ctypes.c_char_p]
    lib.opencc_open.restype = ctypes.c_void_p

    lib.opencc_close.argtypes = [ctypes.c_void_p]
    lib.opencc_close.restype = ctypes.c_int

    # c_void_p rather than c_char_p so the pointer can be freed after copying
    lib.opencc_convert_utf8.argtypes = [ctypes.c_void_p, ctypes.c_char_p, ctypes.c_size_t]
    lib.opencc_convert_utf8.restype = ctypes.c_void_p

    lib.opencc_convert_utf8_to_buffer.argtypes = [
        ctypes.c_void_p,
        ctypes.c_char_p,
        ctypes.c_size_t,
        ctypes.c_char_p,
    ]
    lib.opencc_convert_utf8_to_buffer.restype = ctypes.c_size_t

    lib.opencc_convert_utf8_free.argtypes = [ctypes.c_void_p]
    lib.opencc_convert_utf8_free.restype = None

    lib.opencc_error.argtypes = []
    lib.opencc_error.restype = ctypes.c_char_p


class NativeLibrary:
    """
    Thin wrapper over a loaded OpenCC shared library.

    Methods map one to one onto the C API. No locking happens here; callers
    serialize access per handle.
    """

    def __init__(self, lib: ctypes.CDLL, info: Optional[LibraryInfo] = None) -> None:
        _declare(lib)
        self._lib = lib
        self.info = info

    @property
    def path(self) -> Optional[str]:
        return self.info.path if self.info else getattr(self._lib, "_name", None)

    def open(self, config_path: bytes) -> Optional[int]:
        return self._lib.opencc_open(config_path)

    def close(self, handle: int) -> int:
        return self._lib.opencc_close(handle)

    def convert(self, handle: int, data: bytes) -> Optional[int]:
        return self._lib.opencc_convert_utf8(handle, data, len(data))

    def convert_into(self, handle: int, data: bytes, output: ctypes.Array) -> int:
        return self._lib.opencc_convert_utf8_to_buffer(handle, data, len(data), output)

    def free(self, pointer: int) -> None:
        self._lib.opencc_convert_utf8_free(pointer)

    def last_error(self) -> Optional[str]:
        message = self._lib.opencc_error()
        if message is None:
            return None
        return message.decode("utf-8", errors="replace")


def _load_global(path: str) -> None:
    logger.debug(f"Preloading {path}")
    ctypes.CDLL(path, mode=ctypes.RTLD_GLOBAL)


def open_library(info: LibraryInfo, settings: LibrarySettings) -> NativeLibrary:
    """Load the libraries described by ``info`` and declare the OpenCC API."""
    if sys.platform == "win32":
        for directory in info.search_dirs:
            os.add_dll_directory(str(directory))

    try:
        if settings.dylib_stdcpp:
            stdcpp = ctypes.util.find_library("stdc++")
            if stdcpp is None:
                raise LibraryNotFoundError(
                    "OPENCC_DYLIB_STDCPP is set but libstdc++ was not found",
                    library="stdc++",
                )
            _load_global(stdcpp)

        for dependency in info.dependencies:
            _load_global(dependency)

        lib = ctypes.CDLL(info.path)
    except OSError as e:
        logger.error(f"Failed to load OpenCC library {info.path}: {e}")
        raise LibraryNotFoundError(
            f"Failed to load OpenCC library {info.path}: {e}",
            original_error=e,
            path=info.path,
        ) from e

    try:
        return NativeLibrary(lib, info)
    except AttributeError as e:
        raise LibraryNotFoundError(
            f"{info.path} does not export the OpenCC C API: {e}",
            original_error=e,
            path=info.path,
        ) from e


@lru_cache(maxsize=None)
def _cached_library(settings: LibrarySettings) -> NativeLibrary:
    info = LibraryLocator(settings).locate()
    return open_library(info, settings)


def load_library(settings: Optional[LibrarySettings] = None) -> NativeLibrary:
    """
    Locate and load the OpenCC library, once per distinct settings.

    Args:
        settings: Discovery settings; read from the environment when omitted

    Raises:
        LibraryNotFoundError: If the library cannot be found or loaded
    """
    return _cached_library(settings or LibrarySettings.from_env())
