#!/usr/bin/env python3
"""
Environment-driven settings for locating the OpenCC native library.

The variables mirror the ones OpenCC bindings traditionally honor at build
time. A ctypes binding has no link step, so they are read when the library
is first loaded instead.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

OPENCC_LIB_DIRS = "OPENCC_LIB_DIRS"
OPENCC_INCLUDE_DIRS = "OPENCC_INCLUDE_DIRS"
OPENCC_LIBS = "OPENCC_LIBS"
OPENCC_DIR = "OPENCC_DIR"
OPENCC_STATIC = "OPENCC_STATIC"
OPENCC_DYLIB_STDCPP = "OPENCC_DYLIB_STDCPP"
OPENCC_STATIC_STDCPP = "OPENCC_STATIC_STDCPP"
LIBOPENCC = "LIBOPENCC"

MIN_VERSION = (1, 1, 2)
MAX_VERSION = (1, 2, 0)


def default_libs() -> Tuple[str, ...]:
    """Library names to load when OPENCC_LIBS is not set."""
    if sys.platform == "win32":
        return ("opencc", "marisa", "darts")
    return ("opencc",)


def _flag(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value != "0"


class LibrarySettings(BaseModel):
    """Settings controlling how the OpenCC shared library is found."""

    model_config = ConfigDict(frozen=True)

    library_path: Optional[Path] = None
    lib_dirs: Tuple[Path, ...] = ()
    include_dirs: Tuple[Path, ...] = ()
    libs: Tuple[str, ...] = Field(default_factory=default_libs)
    opencc_dir: Optional[Path] = None
    static: Optional[bool] = None
    dylib_stdcpp: bool = False
    static_stdcpp: bool = False

    @field_validator("lib_dirs", "include_dirs", mode="before")
    @classmethod
    def _split_dirs(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [Path(p) for p in value.split(os.pathsep) if p]
        return value

    @field_validator("libs", mode="before")
    @classmethod
    def _split_libs(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [name for name in value.split(":") if name]
        return value

    @field_validator("libs")
    @classmethod
    def _require_libs(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not value:
            raise ValueError("At least one library name is required")
        return value

    @property
    def search_dirs(self) -> list[Path]:
        """Directories to scan for shared objects, in priority order."""
        if self.lib_dirs:
            return list(self.lib_dirs)
        if self.opencc_dir is not None:
            return [self.opencc_dir / "lib"]
        return []

    @property
    def header_dirs(self) -> list[Path]:
        if self.include_dirs:
            return list(self.include_dirs)
        if self.opencc_dir is not None:
            return [self.opencc_dir / "include"]
        return []

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LibrarySettings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if env.get(LIBOPENCC):
            values["library_path"] = env[LIBOPENCC]
        if env.get(OPENCC_LIB_DIRS):
            values["lib_dirs"] = env[OPENCC_LIB_DIRS]
        if env.get(OPENCC_INCLUDE_DIRS):
            values["include_dirs"] = env[OPENCC_INCLUDE_DIRS]
        if env.get(OPENCC_LIBS):
            values["libs"] = env[OPENCC_LIBS]
        if env.get(OPENCC_DIR):
            values["opencc_dir"] = env[OPENCC_DIR]

        static = _flag(env.get(OPENCC_STATIC))
        if static is not None:
            values["static"] = static
        values["dylib_stdcpp"] = bool(_flag(env.get(OPENCC_DYLIB_STDCPP)))
        values["static_stdcpp"] = bool(_flag(env.get(OPENCC_STATIC_STDCPP)))

        return cls(**values)
