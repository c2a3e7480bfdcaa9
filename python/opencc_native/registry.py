#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: registry.py
Author: Max Qian <astro_air@126.com>
Version: 1.0

Description:
------------
Registry of the dictionary files bundled with opencc_native.

The JSON configs are part of the source tree. The binary ``.ocd2``
dictionaries are produced by an OpenCC build and copied into the package
with :func:`bundle_dictionaries` before a wheel is built. ``CONFIG_MAP``
lists, for every default config, the files OpenCC needs to open it.
"""

from __future__ import annotations

import hashlib
import json
import shutil
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from .configs import DefaultConfig
from .discovery import find_opencc_data_dir
from .exceptions import DictionaryError, MissingDictionaryError

DATA_PACKAGE = "opencc_native.dictionaries"
CHECKSUM_FILE = "checksums.json"


def data_root() -> Traversable:
    """Location of the bundled files."""
    return resources.files(DATA_PACKAGE)


@dataclass(frozen=True)
class StaticDictionary:
    """One bundled file, keyed by its on-disk name."""

    name: str

    @property
    def resource(self) -> Traversable:
        return data_root() / self.name

    @property
    def is_bundled(self) -> bool:
        return self.resource.is_file()

    def read_bytes(self) -> bytes:
        """
        Return the file contents.

        Raises:
            MissingDictionaryError: If the file was not bundled
        """
        try:
            return self.resource.read_bytes()
        except FileNotFoundError as e:
            raise MissingDictionaryError(self.name, original_error=e) from e


def _entries(*names: str) -> Dict[str, StaticDictionary]:
    return {name: StaticDictionary(name) for name in names}


DICTIONARIES: Dict[str, StaticDictionary] = _entries(
    "hk2s.json",
    "hk2t.json",
    "jp2t.json",
    "s2hk.json",
    "s2t.json",
    "s2tw.json",
    "s2twp.json",
    "t2hk.json",
    "t2jp.json",
    "t2s.json",
    "t2tw.json",
    "tw2s.json",
    "tw2sp.json",
    "tw2t.json",
    "HKVariants.ocd2",
    "HKVariantsRev.ocd2",
    "HKVariantsRevPhrases.ocd2",
    "JPShinjitaiCharacters.ocd2",
    "JPShinjitaiPhrases.ocd2",
    "JPVariants.ocd2",
    "JPVariantsRev.ocd2",
    "STCharacters.ocd2",
    "STPhrases.ocd2",
    "TSCharacters.ocd2",
    "TSPhrases.ocd2",
    "TWPhrases.ocd2",
    "TWPhrasesRev.ocd2",
    "TWVariants.ocd2",
    "TWVariantsRev.ocd2",
    "TWVariantsRevPhrases.ocd2",
)


def _manifest(config: DefaultConfig, *dictionaries: str) -> Tuple[StaticDictionary, ...]:
    names = (config.file_name, *(f"{name}.ocd2" for name in dictionaries))
    return tuple(DICTIONARIES[name] for name in names)


CONFIG_MAP: Dict[str, Tuple[StaticDictionary, ...]] = {
    "hk2s.json": _manifest(
        DefaultConfig.HK2S, "TSPhrases", "HKVariantsRevPhrases", "HKVariantsRev", "TSCharacters"
    ),
    "hk2t.json": _manifest(DefaultConfig.HK2T, "HKVariantsRevPhrases", "HKVariantsRev"),
    "jp2t.json": _manifest(
        DefaultConfig.JP2T, "JPShinjitaiPhrases", "JPShinjitaiCharacters", "JPVariantsRev"
    ),
    "s2hk.json": _manifest(DefaultConfig.S2HK, "STPhrases", "STCharacters", "HKVariants"),
    "s2t.json": _manifest(DefaultConfig.S2T, "STPhrases", "STCharacters"),
    "s2tw.json": _manifest(DefaultConfig.S2TW, "STPhrases", "STCharacters", "TWVariants"),
    "s2twp.json": _manifest(
        DefaultConfig.S2TWP, "STPhrases", "STCharacters", "TWPhrases", "TWVariants"
    ),
    "t2hk.json": _manifest(DefaultConfig.T2HK, "HKVariants"),
    "t2jp.json": _manifest(DefaultConfig.T2JP, "JPVariants"),
    "t2s.json": _manifest(DefaultConfig.T2S, "TSPhrases", "TSCharacters"),
    "t2tw.json": _manifest(DefaultConfig.T2TW, "TWVariants"),
    "tw2s.json": _manifest(
        DefaultConfig.TW2S, "TSPhrases", "TWVariantsRevPhrases", "TWVariantsRev", "TSCharacters"
    ),
    "tw2sp.json": _manifest(
        DefaultConfig.TW2SP,
        "TSPhrases",
        "TWPhrasesRev",
        "TWVariantsRevPhrases",
        "TWVariantsRev",
        "TSCharacters",
    ),
    "tw2t.json": _manifest(DefaultConfig.TW2T, "TWVariantsRevPhrases", "TWVariantsRev"),
}


def dictionaries_for(config: Union[str, DefaultConfig]) -> Tuple[StaticDictionary, ...]:
    """Files needed by ``config``, config JSON first."""
    return CONFIG_MAP[DefaultConfig.resolve(config).file_name]


def missing_dictionaries() -> List[str]:
    """Registry files not present in the installed package."""
    return [name for name, entry in DICTIONARIES.items() if not entry.is_bundled]


def _sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _package_dir() -> Path:
    return Path(str(data_root()))


def bundle_dictionaries(
    source_dir: Optional[Union[str, Path]] = None,
    target_dir: Optional[Union[str, Path]] = None,
    names: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Copy registry files from an OpenCC data directory into the package.

    Args:
        source_dir: Directory with OpenCC's installed ``.json``/``.ocd2`` files.
            Located automatically when omitted.
        target_dir: Destination, defaults to the package's dictionaries directory
        names: Registry files to copy, all of them when omitted. The checksum
            file always covers every registry file present in the target.

    Returns:
        Names of the files copied

    Raises:
        DictionaryError: If no source is found or a file is missing from it
    """
    if source_dir is None:
        source = find_opencc_data_dir()
        if source is None:
            raise DictionaryError(
                "No OpenCC data directory found; pass source_dir explicitly",
                error_code="DATA_DIR_NOT_FOUND",
            )
    else:
        source = Path(source_dir)

    target = Path(target_dir) if target_dir is not None else _package_dir()
    target.mkdir(parents=True, exist_ok=True)

    wanted = list(DICTIONARIES) if names is None else list(names)
    unknown = [name for name in wanted if name not in DICTIONARIES]
    if unknown:
        raise DictionaryError(
            f"Not registry files: {', '.join(unknown)}",
            error_code="UNKNOWN_DICTIONARY",
            unknown=unknown,
        )

    missing = [name for name in wanted if not (source / name).is_file()]
    if missing:
        raise DictionaryError(
            f"OpenCC data directory {source} is missing: {', '.join(missing)}",
            error_code="INCOMPLETE_DATA_DIR",
            source=str(source),
            missing=missing,
        )

    for name in wanted:
        shutil.copyfile(source / name, target / name)
        logger.debug(f"Bundled {name} from {source}")

    checksums: Dict[str, str] = {
        name: _sha256((target / name).read_bytes())
        for name in DICTIONARIES
        if (target / name).is_file()
    }

    (target / CHECKSUM_FILE).write_text(
        json.dumps(checksums, indent=2, sort_keys=True) + "\n", encoding="utf-8"
    )
    logger.info(f"Bundled {len(wanted)} dictionary files into {target}")
    return wanted


def load_checksums() -> Mapping[str, str]:
    """Checksums recorded by the last bundling, empty if none."""
    resource = data_root() / CHECKSUM_FILE
    if not resource.is_file():
        return {}
    return json.loads(resource.read_text(encoding="utf-8"))


def verify_bundle() -> List[str]:
    """
    Check bundled files against the recorded checksums.

    Returns:
        Names that are missing or whose contents changed since bundling
    """
    mismatched = []
    for name, expected in load_checksums().items():
        entry = DICTIONARIES.get(name)
        if entry is None or not entry.is_bundled:
            mismatched.append(name)
            continue
        actual = _sha256(entry.read_bytes())
        if actual != expected.lower():
            logger.warning(f"Checksum mismatch for {name}: expected {expected}, got {actual}")
            mismatched.append(name)
    return mismatched
