#!/usr/bin/env python3
"""
Built-in OpenCC conversion configurations.

Each member's value is the canonical file name of its JSON config, so a
member can be joined onto a directory or passed wherever a string is expected.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Union

from .exceptions import UnsupportedConfigError


class DefaultConfig(StrEnum):
    """Default configs shipped with OpenCC."""

    HK2S = "hk2s.json"
    HK2T = "hk2t.json"
    JP2T = "jp2t.json"
    S2HK = "s2hk.json"
    S2T = "s2t.json"
    S2TW = "s2tw.json"
    S2TWP = "s2twp.json"
    T2HK = "t2hk.json"
    T2JP = "t2jp.json"
    T2S = "t2s.json"
    T2TW = "t2tw.json"
    TW2S = "tw2s.json"
    TW2SP = "tw2sp.json"
    TW2T = "tw2t.json"

    @property
    def file_name(self) -> str:
        """Get the file name for this default config."""
        return self.value

    @property
    def description(self) -> str:
        descriptions = {
            DefaultConfig.HK2S: "Traditional Chinese (Hong Kong Standard) to Simplified Chinese",
            DefaultConfig.HK2T: "Traditional Chinese (Hong Kong Standard) to Traditional Chinese",
            DefaultConfig.JP2T: "New Japanese Kanji (Shinjitai) to Traditional Chinese Characters (Kyūjitai)",
            DefaultConfig.S2HK: "Simplified Chinese to Traditional Chinese (Hong Kong Standard)",
            DefaultConfig.S2T: "Simplified Chinese to Traditional Chinese",
            DefaultConfig.S2TW: "Simplified Chinese to Traditional Chinese (Taiwan Standard)",
            DefaultConfig.S2TWP: "Simplified Chinese to Traditional Chinese (Taiwan Standard) with Taiwanese idiom",
            DefaultConfig.T2HK: "Traditional Chinese (OpenCC Standard) to Hong Kong Standard",
            DefaultConfig.T2JP: "Traditional Chinese Characters (Kyūjitai) to New Japanese Kanji (Shinjitai)",
            DefaultConfig.T2S: "Traditional Chinese to Simplified Chinese",
            DefaultConfig.T2TW: "Traditional Chinese (OpenCC Standard) to Taiwan Standard",
            DefaultConfig.TW2S: "Traditional Chinese (Taiwan Standard) to Simplified Chinese",
            DefaultConfig.TW2SP: "Traditional Chinese (Taiwan Standard) to Simplified Chinese with Mainland Chinese idiom",
            DefaultConfig.TW2T: "Traditional Chinese (Taiwan Standard) to Traditional Chinese",
        }
        return descriptions[self]

    def __fspath__(self) -> str:
        return self.value

    @classmethod
    def resolve(cls, config: Union[str, DefaultConfig]) -> DefaultConfig:
        """
        Resolve a config name to a DefaultConfig.

        Accepts a member, a member name ("TW2SP"), a short name ("tw2sp")
        or a file name ("tw2sp.json").

        Raises:
            UnsupportedConfigError: If the value names no default config
        """
        if isinstance(config, cls):
            return config
        if not isinstance(config, str):
            raise UnsupportedConfigError(config)

        normalized = config.strip().lower()
        if not normalized.endswith(".json"):
            normalized = f"{normalized}.json"

        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedConfigError(config) from None
