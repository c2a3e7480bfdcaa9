#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: discovery.py
Author: Max Qian <astro_air@126.com>
Version: 1.0

Description:
------------
Locate the OpenCC shared library on the current system.

Resolution order:
    1. An explicit library path (LIBOPENCC)
    2. OPENCC_LIB_DIRS, or OPENCC_DIR/lib, scanned for every configured library
    3. pkg-config, restricted to OpenCC >= 1.1.2 and < 1.2.0; a libdir without
       the shared library falls through to the next step
    4. ctypes.util.find_library
"""

from __future__ import annotations

import ctypes.util
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from .exceptions import LibraryNotFoundError
from .settings import MAX_VERSION, MIN_VERSION, LibrarySettings

MAIN_LIBRARY = "opencc"

_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


@dataclass
class LibraryInfo:
    """Result of a library lookup."""

    path: str
    dependencies: List[str] = field(default_factory=list)
    search_dirs: List[Path] = field(default_factory=list)
    include_dirs: List[Path] = field(default_factory=list)
    version: Optional[str] = None
    method: str = "unknown"

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": self.path,
            "dependencies": list(self.dependencies),
            "search_dirs": [str(d) for d in self.search_dirs],
            "include_dirs": [str(d) for d in self.include_dirs],
            "version": self.version,
            "method": self.method,
        }


def parse_version(version: str) -> Tuple[int, int, int]:
    """Parse "1.1.9" (or "1.1") into a comparable tuple."""
    match = _VERSION_RE.match(version.strip())
    if not match:
        raise ValueError(f"Unrecognized version string: {version!r}")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def is_supported_version(version: str) -> bool:
    try:
        parsed = parse_version(version)
    except ValueError:
        return False
    return MIN_VERSION <= parsed < MAX_VERSION


def _format_version(version: Tuple[int, int, int]) -> str:
    return ".".join(str(part) for part in version)


def shared_library_patterns(name: str) -> List[str]:
    """File name patterns of a shared object for the current platform."""
    if sys.platform == "win32":
        return [f"{name}.dll", f"lib{name}.dll", f"lib{name}-*.dll"]
    if sys.platform == "darwin":
        return [f"lib{name}.dylib", f"lib{name}.*.dylib"]
    return [f"lib{name}.so", f"lib{name}.so.*"]


def static_library_patterns(name: str) -> List[str]:
    return [f"lib{name}.a", f"{name}.lib"]


def _first_match(directories: Iterable[Path], patterns: Sequence[str]) -> Optional[Path]:
    for directory in directories:
        for pattern in patterns:
            matches = sorted(directory.glob(pattern))
            if matches:
                return matches[0]
    return None


class LibraryLocator:
    """
    Finds the OpenCC shared library and the libraries it depends on.

    The locator only reports paths; loading is done by
    :func:`opencc_native.native.load_library`.
    """

    def __init__(
        self,
        settings: Optional[LibrarySettings] = None,
        pkg_config: str = "pkg-config",
    ) -> None:
        self.settings = settings or LibrarySettings.from_env()
        self.pkg_config = pkg_config

    @property
    def main_library(self) -> str:
        libs = self.settings.libs
        return MAIN_LIBRARY if MAIN_LIBRARY in libs else libs[0]

    @property
    def dependency_libraries(self) -> List[str]:
        return [name for name in self.settings.libs if name != self.main_library]

    def locate(self) -> LibraryInfo:
        """
        Locate the OpenCC shared library.

        Returns:
            LibraryInfo describing what to load

        Raises:
            LibraryNotFoundError: If no usable shared library is found
        """
        settings = self.settings

        if settings.static:
            raise LibraryNotFoundError(
                "OPENCC_STATIC requests static linking, but only shared libraries "
                "can be loaded at runtime",
                setting="OPENCC_STATIC",
            )
        if settings.static_stdcpp:
            logger.warning(
                "OPENCC_STATIC_STDCPP has no effect when loading OpenCC at runtime"
            )

        include_dirs = settings.header_dirs
        self._require_directories(include_dirs, "include")

        if settings.library_path is not None:
            info = self._from_explicit_path(settings.library_path)
        elif settings.search_dirs:
            info = self._from_directories(settings.search_dirs, method="lib_dirs")
        else:
            info = self._from_pkg_config() or self._from_system()

        info.include_dirs = include_dirs
        logger.info(f"Found OpenCC library via {info.method}: {info.path}")
        return info

    def _require_directories(self, directories: Sequence[Path], kind: str) -> None:
        for directory in directories:
            if not directory.is_dir():
                logger.error(f"OpenCC {kind} directory does not exist: {directory}")
                raise LibraryNotFoundError(
                    f"OpenCC {kind} directory does not exist: {directory}",
                    directory=str(directory),
                )

    def _from_explicit_path(self, path: Path) -> LibraryInfo:
        if not path.is_file():
            raise LibraryNotFoundError(
                f"OpenCC library file does not exist: {path}", path=str(path)
            )
        dependencies: List[str] = []
        if self.dependency_libraries:
            dependencies = self._scan(
                [path.parent], self.dependency_libraries, required=False
            )
        return LibraryInfo(
            path=str(path),
            dependencies=dependencies,
            search_dirs=[path.parent],
            method="explicit",
        )

    def _from_directories(
        self,
        directories: Sequence[Path],
        method: str,
        version: Optional[str] = None,
    ) -> LibraryInfo:
        self._require_directories(directories, "library")
        main = self._scan(directories, [self.main_library], required=True)
        dependencies = self._scan(
            directories, self.dependency_libraries, required=True
        )
        return LibraryInfo(
            path=main[0],
            dependencies=dependencies,
            search_dirs=list(directories),
            version=version,
            method=method,
        )

    def _scan(
        self, directories: Sequence[Path], names: Sequence[str], required: bool
    ) -> List[str]:
        found: List[str] = []
        missing: List[str] = []
        for name in names:
            match = _first_match(directories, shared_library_patterns(name))
            if match is None:
                missing.append(name)
            else:
                logger.debug(f"Found shared library for {name}: {match}")
                found.append(str(match))

        if missing and required:
            static_only = [
                name
                for name in missing
                if _first_match(directories, static_library_patterns(name))
            ]
            dirs = ", ".join(str(d) for d in directories)
            if static_only:
                message = (
                    f"OpenCC libdirs at `{dirs}` only contain static libraries for "
                    f"{', '.join(static_only)}; a shared build of OpenCC is required"
                )
            else:
                message = (
                    f"OpenCC libdirs at `{dirs}` do not contain shared libraries for "
                    f"{', '.join(missing)}"
                )
            logger.error(message)
            raise LibraryNotFoundError(message, missing=missing)
        return found

    def run_pkg_config(self, *args: str) -> Optional[str]:
        """Run pkg-config for opencc; None when pkg-config or the package is unavailable."""
        executable = shutil.which(self.pkg_config)
        if executable is None:
            logger.debug(f"{self.pkg_config} not found on PATH")
            return None
        command = [executable, *args, MAIN_LIBRARY]
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, check=True, timeout=30
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            logger.debug(f"pkg-config failed for {' '.join(command)}: {e}")
            return None
        return result.stdout.strip()

    def _from_pkg_config(self) -> Optional[LibraryInfo]:
        version = self.run_pkg_config("--modversion")
        if not version:
            return None

        if not is_supported_version(version):
            message = (
                f"pkg-config found OpenCC {version}. OpenCC version must be >= "
                f"{_format_version(MIN_VERSION)} and < {_format_version(MAX_VERSION)}"
            )
            logger.error(message)
            raise LibraryNotFoundError(message, version=version)

        libdir = self.run_pkg_config("--variable=libdir")
        if not libdir:
            return None
        try:
            return self._from_directories(
                [Path(libdir)], method="pkg-config", version=version
            )
        except LibraryNotFoundError as e:
            logger.warning(
                f"pkg-config libdir {libdir} is unusable, trying the system search: {e}"
            )
            return None

    def _from_system(self) -> LibraryInfo:
        name = ctypes.util.find_library(self.main_library)
        if name is None:
            raise LibraryNotFoundError(
                "Couldn't find the OpenCC library. Install OpenCC or set "
                "OPENCC_LIB_DIRS, OPENCC_DIR or LIBOPENCC",
                library=self.main_library,
            )
        dependencies = []
        for dependency in self.dependency_libraries:
            found = ctypes.util.find_library(dependency)
            if found is None:
                raise LibraryNotFoundError(
                    f"Couldn't find the {dependency} library required by OpenCC",
                    library=dependency,
                )
            dependencies.append(found)
        return LibraryInfo(path=name, dependencies=dependencies, method="find_library")


def find_opencc_data_dir(settings: Optional[LibrarySettings] = None) -> Optional[Path]:
    """
    Find the directory where an OpenCC installation keeps its dictionaries.

    Checks OPENCC_DIR/share/opencc, the pkg-config prefix and the usual
    system locations, returning the first that exists.
    """
    settings = settings or LibrarySettings.from_env()
    candidates: List[Path] = []
    if settings.opencc_dir is not None:
        candidates.append(settings.opencc_dir / "share" / "opencc")

    prefix = LibraryLocator(settings).run_pkg_config("--variable=prefix")
    if prefix:
        candidates.append(Path(prefix) / "share" / "opencc")

    candidates.extend(
        [Path("/usr/share/opencc"), Path("/usr/local/share/opencc"), Path("/opt/homebrew/share/opencc")]
    )

    for candidate in candidates:
        if candidate.is_dir():
            logger.debug(f"Using OpenCC data directory {candidate}")
            return candidate
    return None
