#!/usr/bin/env python3
"""
setuptools hook that puts the OpenCC dictionaries into every build.

The ``.ocd2`` files are not kept in the source tree. ``build_py`` copies
them from an OpenCC data directory (``OPENCC_DATA_DIR`` or the directory
found by :func:`find_opencc_data_dir`) next to the JSON configs, so a wheel
carries all registry files or is not built at all.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Mapping, Optional, Union

from loguru import logger
from setuptools.command.build_py import build_py
from setuptools.errors import SetupError

from .discovery import find_opencc_data_dir
from .exceptions import DictionaryError
from .registry import DATA_PACKAGE, DICTIONARIES, bundle_dictionaries

OPENCC_DATA_DIR = "OPENCC_DATA_DIR"


def resolve_data_dir(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """OPENCC_DATA_DIR when set, otherwise the installed OpenCC data directory."""
    env = os.environ if environ is None else environ
    if env.get(OPENCC_DATA_DIR):
        return Path(env[OPENCC_DATA_DIR])
    return find_opencc_data_dir()


def bundle_into(
    target: Union[str, Path],
    *,
    source: Optional[Union[str, Path]] = None,
    required: bool = True,
) -> List[str]:
    """
    Make sure ``target`` holds every registry file.

    Args:
        target: Dictionary directory of the package being built
        source: OpenCC data directory, resolved with :func:`resolve_data_dir` when omitted
        required: Raise when the files cannot be provided; otherwise only warn

    Returns:
        Names of the files copied, empty when ``target`` was already complete

    Raises:
        DictionaryError: If ``required`` and some files are still missing
    """
    target = Path(target)
    missing = [name for name in DICTIONARIES if not (target / name).is_file()]
    if not missing:
        logger.debug(f"All {len(DICTIONARIES)} dictionary files already in {target}")
        return []

    try:
        data_dir = Path(source) if source is not None else resolve_data_dir()
        if data_dir is None:
            raise DictionaryError(
                f"{len(missing)} dictionary files are missing from {target} and no "
                f"OpenCC data directory was found; set {OPENCC_DATA_DIR}",
                error_code="DATA_DIR_NOT_FOUND",
                missing=missing,
            )
        return bundle_dictionaries(source_dir=data_dir, target_dir=target, names=missing)
    except DictionaryError as e:
        if required:
            raise
        logger.warning(f"Dictionaries not bundled: {e}")
        return []


class BuildWithDictionaries(build_py):
    """``build_py`` that also bundles the OpenCC dictionaries."""

    def run(self) -> None:
        super().run()

        # editable installs read package data from the source tree
        editable = getattr(self, "editable_mode", False)
        if editable:
            target = Path(self.get_package_dir(DATA_PACKAGE))
        else:
            target = Path(self.build_lib, *DATA_PACKAGE.split("."))

        try:
            copied = bundle_into(target, required=not editable)
        except DictionaryError as e:
            raise SetupError(f"Cannot build opencc_native: {e}") from e
        if copied:
            logger.info(f"Bundled {len(copied)} dictionary files for the build")
