"""Tests for storage stall detection."""

from __future__ import annotations

import io

from sd_playlist import hangwatch


def test_enable_faulthandler_creates_hangdump(tmp_path, monkeypatch) -> None:
    calls: list[object] = []

    def fake_enable(*, file, all_threads: bool) -> None:
        calls.append((file, all_threads))

    monkeypatch.setattr(hangwatch.faulthandler, "enable", fake_enable)
    dump_path = hangwatch.enable_faulthandler(tmp_path / "sd_playlist.log")
    assert dump_path == tmp_path / "hangdump.log"
    assert calls
    handle = hangwatch._DUMP_FILE
    assert handle is not None
    handle.close()
    hangwatch._DUMP_FILE = None


def test_dump_threads_writes_label(monkeypatch) -> None:
    buffer = io.StringIO()

    def fake_dump_traceback(*, file, all_threads: bool) -> None:
        file.write("traceback")

    monkeypatch.setattr(hangwatch.faulthandler, "dump_traceback", fake_dump_traceback)
    monkeypatch.setattr(hangwatch, "_DUMP_FILE", buffer)
    hangwatch.dump_threads("storage stalled")
    output = buffer.getvalue()
    assert "storage stalled" in output
    assert "traceback" in output


class _RecordingLock:
    def __init__(self) -> None:
        self.held = False
        self.acquired = 0

    def __enter__(self) -> None:
        self.held = True
        self.acquired += 1

    def __exit__(self, *_exc: object) -> None:
        self.held = False


def test_dump_threads_holds_lock_while_writing(monkeypatch) -> None:
    lock = _RecordingLock()
    held_during_dump: list[bool] = []

    def fake_dump_traceback(*, file, all_threads: bool) -> None:
        held_during_dump.append(lock.held)

    monkeypatch.setattr(hangwatch.faulthandler, "dump_traceback", fake_dump_traceback)
    monkeypatch.setattr(hangwatch, "_LOCK", lock)
    monkeypatch.setattr(hangwatch, "_DUMP_FILE", io.StringIO())
    hangwatch.dump_threads("storage stalled")
    assert held_during_dump == [True]
    assert lock.acquired == 1


def test_dump_threads_without_file_is_noop(monkeypatch) -> None:
    monkeypatch.setattr(hangwatch, "_DUMP_FILE", None)
    hangwatch.dump_threads("nothing")


class _StopAfterOnePoll:
    def __init__(self) -> None:
        self._set = False

    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        self._set = True

    def wait(self, _seconds: float) -> bool:
        self._set = True
        return True


def test_watchdog_dumps_when_storage_stalls(monkeypatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(hangwatch, "dump_threads", calls.append)
    monkeypatch.setattr(hangwatch.time, "monotonic", lambda: 100.0)
    watchdog = hangwatch.StorageWatchdog(lambda: 0.0, threshold_seconds=1.0)
    watchdog._stop_event = _StopAfterOnePoll()
    watchdog._run()
    assert calls == ["storage stalled"]


def test_watchdog_quiet_while_storage_active(monkeypatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(hangwatch, "dump_threads", calls.append)
    monkeypatch.setattr(hangwatch.time, "monotonic", lambda: 100.0)
    watchdog = hangwatch.StorageWatchdog(lambda: 99.5, threshold_seconds=1.0)
    watchdog._stop_event = _StopAfterOnePoll()
    watchdog._run()
    assert calls == []


def test_watchdog_context_manager_stops_thread() -> None:
    with hangwatch.StorageWatchdog(lambda: 0.0, poll_seconds=0.01) as watchdog:
        pass
    watchdog._thread.join(timeout=1.0)
    assert not watchdog._thread.is_alive()
