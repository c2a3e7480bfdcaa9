#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: __init__.py
Author: Max Qian <astro_air@126.com>
Version: 1.0

Description:
------------
Open Chinese Convert (OpenCC, 開放中文轉換) binding for Python, built on the
native OpenCC C library through ctypes.

The package provides:
    1. OpenCC, a thread-safe converter handle around one native instance
    2. DefaultConfig, the 14 conversion configurations shipped with OpenCC
    3. generate_static_dictionary / generate_static_dictionaries, which write
       the bundled dictionary files to a directory so no OpenCC data
       installation is needed at runtime

Library lookup honors OPENCC_LIB_DIRS, OPENCC_LIBS, OPENCC_DIR,
OPENCC_INCLUDE_DIRS, OPENCC_STATIC, OPENCC_DYLIB_STDCPP and LIBOPENCC.

License:
--------
This package is released under the Apache-2.0 License.
"""

from .configs import DefaultConfig
from .converter import OpenCC
from .discovery import LibraryInfo, LibraryLocator, find_opencc_data_dir
from .exceptions import (
    OpenCCError,
    InvalidConfigPathError,
    NewInstanceFailedError,
    InputContainsNullError,
    ConversionFailedError,
    InvalidUtf8Error,
    LibraryNotFoundError,
    DictionaryError,
    UnsupportedConfigError,
    DictionaryPathError,
    MissingDictionaryError,
)
from .logging_config import setup_logging
from .materializer import generate_static_dictionary, generate_static_dictionaries
from .native import NativeLibrary, load_library
from .registry import (
    CONFIG_MAP,
    DICTIONARIES,
    StaticDictionary,
    bundle_dictionaries,
    dictionaries_for,
    missing_dictionaries,
    verify_bundle,
)
from .settings import LibrarySettings

# Module metadata
__version__ = "1.2.0"
__author__ = "Max Qian"
__license__ = "Apache-2.0"

# Public API
__all__ = [
    "OpenCC",
    "DefaultConfig",
    "generate_static_dictionary",
    "generate_static_dictionaries",
    "bundle_dictionaries",
    "dictionaries_for",
    "missing_dictionaries",
    "verify_bundle",
    "StaticDictionary",
    "CONFIG_MAP",
    "DICTIONARIES",
    "LibrarySettings",
    "LibraryLocator",
    "LibraryInfo",
    "NativeLibrary",
    "load_library",
    "find_opencc_data_dir",
    "setup_logging",
    "OpenCCError",
    "InvalidConfigPathError",
    "NewInstanceFailedError",
    "InputContainsNullError",
    "ConversionFailedError",
    "InvalidUtf8Error",
    "LibraryNotFoundError",
    "DictionaryError",
    "UnsupportedConfigError",
    "DictionaryPathError",
    "MissingDictionaryError",
]
