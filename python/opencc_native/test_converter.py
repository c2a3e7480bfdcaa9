import ctypes
import io
import threading
from pathlib import Path

import pytest

from .converter import OpenCC, UNKNOWN_CONVERSION_ERROR, UNKNOWN_OPEN_ERROR
from .exceptions import (
    ConversionFailedError,
    InputContainsNullError,
    InvalidConfigPathError,
    InvalidUtf8Error,
    NewInstanceFailedError,
)
from .native import INVALID_HANDLE, SIZE_MAX


# --- Construction ---

def test_open_passes_utf8_path(fake_library):
    cc = OpenCC(Path("/tmp/字典/tw2sp.json"), library=fake_library)
    assert fake_library.opened == ["/tmp/字典/tw2sp.json".encode("utf-8")]
    assert cc.config_path == "/tmp/字典/tw2sp.json"
    assert not cc.closed


def test_open_accepts_bytes_path(fake_library):
    OpenCC(b"/tmp/tw2sp.json", library=fake_library)
    assert fake_library.opened == [b"/tmp/tw2sp.json"]


@pytest.mark.parametrize(
    "path",
    ["/tmp/bad\0path.json", b"/tmp/bad\0path.json", b"/tmp/\xff\xfe.json", "/tmp/\udcff.json"],
)
def test_invalid_config_path(fake_library, path):
    with pytest.raises(InvalidConfigPathError):
        OpenCC(path, library=fake_library)
    assert fake_library.opened == []


@pytest.mark.parametrize("result", [None, 0, INVALID_HANDLE])
def test_open_failure_reports_native_error(fake_library, result):
    fake_library.open_result = result
    fake_library.error = "tw2sp.json not found or not accessible."
    with pytest.raises(NewInstanceFailedError) as excinfo:
        OpenCC("/missing/tw2sp.json", library=fake_library)
    assert excinfo.value.native_message == "tw2sp.json not found or not accessible."
    assert "tw2sp.json not found" in str(excinfo.value)


def test_open_failure_without_native_message(fake_library):
    fake_library.open_result = None
    with pytest.raises(NewInstanceFailedError) as excinfo:
        OpenCC("/missing/tw2sp.json", library=fake_library)
    assert excinfo.value.native_message == UNKNOWN_OPEN_ERROR


# --- convert ---

def test_convert(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    assert cc.convert("涼風有訊") == "凉风有讯"
    assert fake_library.live == {}
    assert len(fake_library.freed) == 1


def test_convert_empty_string(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    assert cc.convert("") == ""
    assert len(fake_library.freed) == 1


def test_convert_rejects_nul(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    with pytest.raises(InputContainsNullError):
        cc.convert("涼風\0有訊")
    assert fake_library.calls == []


def test_convert_failure(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    fake_library.convert_fails = True
    fake_library.error = "conversion error"
    with pytest.raises(ConversionFailedError) as excinfo:
        cc.convert("無")
    assert excinfo.value.native_message == "conversion error"
    assert fake_library.freed == []


def test_convert_failure_without_native_message(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    fake_library.convert_fails = True
    with pytest.raises(ConversionFailedError) as excinfo:
        cc.convert("無")
    assert excinfo.value.native_message == UNKNOWN_CONVERSION_ERROR


def test_convert_frees_result_when_copy_fails(fake_library, mocker):
    cc = OpenCC("tw2sp.json", library=fake_library)
    mocker.patch.object(ctypes, "string_at", side_effect=RuntimeError("boom"))
    with pytest.raises(RuntimeError):
        cc.convert("無")
    assert len(fake_library.freed) == 1


def test_convert_replaces_invalid_utf8(fake_library, mocker):
    cc = OpenCC("tw2sp.json", library=fake_library)
    mocker.patch.object(fake_library, "translate", return_value=b"ok\xff")
    assert cc.convert("x") == "ok\ufffd"


# --- convert_append ---

def test_convert_append(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    buffer = io.StringIO()
    buffer.write(cc.convert("涼風有訊"))

    appended = cc.convert_append("，秋月無邊", buffer)

    assert buffer.getvalue() == "凉风有讯，秋月无边"
    assert appended == len("，秋月无边")


def test_convert_append_matches_convert_of_concatenation(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    buffer = io.StringIO()
    buffer.write(cc.convert("涼風有訊"))
    cc.convert_append("，秋月無邊", buffer)
    assert buffer.getvalue() == cc.convert("涼風有訊，秋月無邊")


def test_convert_append_sizes_buffer(fake_library, mocker):
    cc = OpenCC("tw2sp.json", library=fake_library)
    spy = mocker.spy(ctypes, "create_string_buffer")
    cc.convert_append("無", io.StringIO())
    spy.assert_called_once_with(len("無".encode("utf-8")) * 3 + 1)


def test_convert_append_zero_size(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    buffer = io.StringIO()
    buffer.write("unchanged")
    assert cc.convert_append("", buffer) == 0
    assert buffer.getvalue() == "unchanged"


def test_convert_append_failure(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    fake_library.convert_into_size = SIZE_MAX
    fake_library.error = "buffer conversion error"
    buffer = io.StringIO()
    with pytest.raises(ConversionFailedError) as excinfo:
        cc.convert_append("無", buffer)
    assert excinfo.value.native_message == "buffer conversion error"
    assert buffer.getvalue() == ""


def test_convert_append_invalid_utf8(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    fake_library.convert_into_bytes = b"\xe6\x97"
    buffer = io.StringIO()
    with pytest.raises(InvalidUtf8Error):
        cc.convert_append("無", buffer)
    assert buffer.getvalue() == ""


def test_convert_append_rejects_nul(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    with pytest.raises(InputContainsNullError):
        cc.convert_append("\0", io.StringIO())
    assert fake_library.calls == []


# --- Lifecycle ---

def test_close_is_idempotent(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    cc.close()
    cc.close()
    assert fake_library.closed == [0x1000]
    assert cc.closed


def test_context_manager_closes(fake_library):
    with OpenCC("tw2sp.json", library=fake_library) as cc:
        assert cc.convert("無") == "无"
    assert fake_library.closed == [0x1000]


def test_convert_after_close(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    cc.close()
    with pytest.raises(NewInstanceFailedError):
        cc.convert("無")
    with pytest.raises(NewInstanceFailedError):
        cc.convert_append("無", io.StringIO())


def test_garbage_collection_closes(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    del cc
    assert fake_library.closed == [0x1000]


def test_failed_open_never_closes(fake_library):
    fake_library.open_result = None
    with pytest.raises(NewInstanceFailedError):
        OpenCC("tw2sp.json", library=fake_library)
    assert fake_library.closed == []


def test_concurrent_conversions_are_serialized(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    active = []
    overlaps = []
    original = fake_library.convert

    def tracking_convert(handle, data):
        active.append(1)
        if len(active) > 1:
            overlaps.append(True)
        try:
            return original(handle, data)
        finally:
            active.pop()

    fake_library.convert = tracking_convert
    results = []

    def worker():
        for _ in range(50):
            results.append(cc.convert("涼風有訊"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []
    assert results == ["凉风有讯"] * 400
    assert fake_library.live == {}


def test_concurrent_appends_are_serialized(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    active = []
    overlaps = []
    original = fake_library.convert_into

    def tracking_convert_into(handle, data, output):
        active.append(1)
        if len(active) > 1:
            overlaps.append(True)
        try:
            return original(handle, data, output)
        finally:
            active.pop()

    fake_library.convert_into = tracking_convert_into
    buffers = [io.StringIO() for _ in range(8)]

    def worker(buffer):
        for _ in range(50):
            cc.convert_append("涼風有訊", buffer)

    threads = [threading.Thread(target=worker, args=(buffer,)) for buffer in buffers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []
    assert all(buffer.getvalue() == "凉风有讯" * 50 for buffer in buffers)


def test_close_waits_for_running_conversion(fake_library):
    cc = OpenCC("tw2sp.json", library=fake_library)
    events = []
    entered = threading.Event()
    release = threading.Event()
    original_convert_into = fake_library.convert_into
    original_close = fake_library.close

    def slow_convert_into(handle, data, output):
        events.append("convert start")
        entered.set()
        release.wait(timeout=5)
        events.append("convert end")
        return original_convert_into(handle, data, output)

    def recording_close(handle):
        events.append("close")
        return original_close(handle)

    fake_library.convert_into = slow_convert_into
    fake_library.close = recording_close
    buffer = io.StringIO()

    converter = threading.Thread(target=cc.convert_append, args=("無", buffer))
    converter.start()
    assert entered.wait(timeout=5)

    closer = threading.Thread(target=cc.close)
    closer.start()
    closer.join(timeout=0.1)
    assert closer.is_alive()
    assert fake_library.closed == []

    release.set()
    converter.join(timeout=5)
    closer.join(timeout=5)

    assert events == ["convert start", "convert end", "close"]
    assert buffer.getvalue() == "无"
    assert cc.closed
