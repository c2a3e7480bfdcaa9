#!/usr/bin/env python3
"""
Write bundled dictionary files to disk so OpenCC can open them.

Usually OpenCC needs an installation that provides its dictionaries. With
these functions the files shipped inside this package are recovered on demand,
which keeps an application portable:

    >>> generate_static_dictionary(output_dir, DefaultConfig.TW2SP)
    >>> OpenCC(Path(output_dir) / DefaultConfig.TW2SP.file_name)
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable, Union

from loguru import logger

from .configs import DefaultConfig
from .exceptions import DictionaryPathError, UnsupportedConfigError
from .registry import CONFIG_MAP

PathLike = Union[str, Path]


def _prepare_directory(path: Path) -> None:
    if path.exists():
        if not path.is_dir():
            raise DictionaryPathError(path)
    else:
        path.mkdir(parents=True, exist_ok=True)


def _write_exclusive(output_path: Path, data: bytes) -> bool:
    """
    Write ``data`` to ``output_path`` unless the file already exists.

    The contents go to a temporary file in the same directory first and are
    hard-linked into place, so ``output_path`` is either absent or complete.
    """
    temp = tempfile.NamedTemporaryFile(
        dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp", delete=False
    )
    temp_path = Path(temp.name)
    try:
        with temp:
            temp.write(data)
        try:
            os.link(temp_path, output_path)
        except FileExistsError:
            return False
        return True
    finally:
        temp_path.unlink(missing_ok=True)


def _write_config_files(path: Path, config: Union[str, DefaultConfig]) -> None:
    resolved = DefaultConfig.resolve(config)
    dictionaries = CONFIG_MAP.get(resolved.file_name)
    if dictionaries is None:
        raise UnsupportedConfigError(resolved.file_name)

    pending = [
        (path / dictionary.name, dictionary.read_bytes())
        for dictionary in dictionaries
        if not (path / dictionary.name).exists()
    ]

    for output_path, data in pending:
        if _write_exclusive(output_path, data):
            logger.debug(f"Wrote {output_path} ({len(data)} bytes)")
        else:
            # written concurrently by another caller
            logger.debug(f"Kept existing {output_path}")


def generate_static_dictionary(path: PathLike, config: Union[str, DefaultConfig]) -> None:
    """
    Generate the files for one config. These files are used to open a new OpenCC instance.

    Existing files are left untouched, so calling this repeatedly is safe.

    Args:
        path: Output directory, created if missing
        config: Default config to write

    Raises:
        DictionaryPathError: If ``path`` exists but is not a directory
        UnsupportedConfigError: If ``config`` is not a default config
        MissingDictionaryError: If a required file is not bundled
        OSError: On any filesystem failure
    """
    output_dir = Path(path)
    _prepare_directory(output_dir)
    _write_config_files(output_dir, config)


def generate_static_dictionaries(
    path: PathLike, configs: Iterable[Union[str, DefaultConfig]]
) -> None:
    """
    Generate the files for several configs into one directory.

    Files shared between configs are written once.
    """
    output_dir = Path(path)
    _prepare_directory(output_dir)

    for config in configs:
        _write_config_files(output_dir, config)
