import ctypes
from typing import Dict, List, Optional

import pytest

from . import registry
from .configs import DefaultConfig
from .exceptions import LibraryNotFoundError
from .native import load_library
from .registry import CONFIG_MAP, DICTIONARIES

# A handful of Taiwan-traditional to simplified mappings
TW2SP_TABLE = {
    "涼": "凉",
    "風": "风",
    "訊": "讯",
    "無": "无",
    "邊": "边",
}


class FakeOpenCCLibrary:
    """
    Pure Python stand-in for the OpenCC C API.

    Results are real ctypes buffers so the converter's pointer handling is
    exercised exactly as with the native library.
    """

    def __init__(self, table: Optional[Dict[str, str]] = None):
        self.table = TW2SP_TABLE if table is None else table
        self.opened: List[bytes] = []
        self.closed: List[int] = []
        self.freed: List[int] = []
        self.live: Dict[int, ctypes.Array] = {}
        self.error: Optional[str] = None
        self.open_result: Optional[int] = 0x1000
        self.convert_fails = False
        self.convert_into_size: Optional[int] = None
        self.convert_into_bytes: Optional[bytes] = None
        self.calls: List[str] = []

    def translate(self, data: bytes) -> bytes:
        text = data.decode("utf-8")
        return "".join(self.table.get(ch, ch) for ch in text).encode("utf-8")

    def open(self, config_path: bytes) -> Optional[int]:
        self.opened.append(config_path)
        return self.open_result

    def close(self, handle: int) -> int:
        self.closed.append(handle)
        return 0

    def convert(self, handle: int, data: bytes) -> Optional[int]:
        self.calls.append("convert")
        if self.convert_fails:
            return None
        buffer = ctypes.create_string_buffer(self.translate(data))
        address = ctypes.addressof(buffer)
        self.live[address] = buffer
        return address

    def convert_into(self, handle: int, data: bytes, output: ctypes.Array) -> int:
        self.calls.append("convert_into")
        if self.convert_into_size is not None:
            return self.convert_into_size
        result = self.convert_into_bytes
        if result is None:
            result = self.translate(data)
        ctypes.memmove(output, result + b"\0", len(result) + 1)
        return len(result)

    def free(self, pointer: int) -> None:
        self.freed.append(pointer)
        self.live.pop(pointer, None)

    def last_error(self) -> Optional[str]:
        return self.error


@pytest.fixture
def fake_library():
    return FakeOpenCCLibrary()


@pytest.fixture
def native_library():
    """The real OpenCC library, skipping the test when it is not installed."""
    try:
        return load_library()
    except LibraryNotFoundError as e:
        pytest.skip(f"OpenCC library not available: {e}")


def blob(name: str) -> bytes:
    return f"contents of {name}".encode("utf-8")


@pytest.fixture
def fake_bundle(tmp_path, monkeypatch):
    """Replace the package data with a complete set of fake files."""
    root = tmp_path / "bundle"
    root.mkdir()
    for name in DICTIONARIES:
        (root / name).write_bytes(blob(name))
    monkeypatch.setattr(registry, "data_root", lambda: root)
    return root


def require_bundled(config: DefaultConfig) -> None:
    missing = [entry.name for entry in CONFIG_MAP[config.file_name] if not entry.is_bundled]
    if missing:
        pytest.skip(f"dictionaries not bundled: {', '.join(missing)}")
