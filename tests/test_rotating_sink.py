import threading
from datetime import datetime

import pytest

from adslogger.services.logging.rotating_sink import RotatingLogSink, format_entry

TIMESTAMP = datetime(2024, 5, 1, 12, 0, 0)


def read_lines(path):
    return path.read_text(encoding="utf-8").splitlines()


def test_entry_format():
    assert format_entry("MAIN.x", "42", TIMESTAMP) == \
        "2024-05-01 12:00:00 - Variable 'MAIN.x' changed to: 42\n"


def test_append_writes_entry(tmp_path):
    sink = RotatingLogSink(tmp_path, max_lines=10)

    assert sink.append("MAIN.rValue", "3.14", TIMESTAMP)
    assert (tmp_path / "Log.txt").read_text(encoding="utf-8") == \
        "2024-05-01 12:00:00 - Variable 'MAIN.rValue' changed to: 3.14\n"


def test_rotates_when_full(tmp_path):
    sink = RotatingLogSink(tmp_path, max_lines=3, fsync=False)
    for i in range(4):
        assert sink.append("MAIN.x", str(i), TIMESTAMP)

    rotated = read_lines(tmp_path / "Log1.txt")
    active = read_lines(tmp_path / "Log.txt")
    assert len(rotated) == 3
    assert rotated[0].endswith("changed to: 0")
    assert active == ["2024-05-01 12:00:00 - Variable 'MAIN.x' changed to: 3"]
    assert sink.rotations == 1


def test_sequence_numbers_increase(tmp_path):
    sink = RotatingLogSink(tmp_path, max_lines=3, fsync=False)
    for i in range(7):
        sink.append("MAIN.x", str(i), TIMESTAMP)

    assert read_lines(tmp_path / "Log1.txt")[0].endswith("changed to: 0")
    assert read_lines(tmp_path / "Log2.txt")[0].endswith("changed to: 3")
    assert len(read_lines(tmp_path / "Log.txt")) == 1
    assert sink.next_sequence == 3


def test_resumes_after_existing_rotated_files(tmp_path):
    (tmp_path / "Log5.txt").write_text("old\n", encoding="utf-8")
    (tmp_path / "Log.txt").write_text("a\nb\n", encoding="utf-8")

    sink = RotatingLogSink(tmp_path, max_lines=2, fsync=False)
    assert sink.next_sequence == 6

    sink.append("MAIN.x", "1", TIMESTAMP)

    assert read_lines(tmp_path / "Log5.txt") == ["old"]
    assert read_lines(tmp_path / "Log6.txt") == ["a", "b"]
    assert len(read_lines(tmp_path / "Log.txt")) == 1


def test_never_overwrites_rotated_file(tmp_path):
    sink = RotatingLogSink(tmp_path, max_lines=1, fsync=False)
    sink.append("MAIN.x", "1", TIMESTAMP)
    # Appears after the sink scanned the directory
    (tmp_path / "Log1.txt").write_text("foreign\n", encoding="utf-8")

    sink.append("MAIN.x", "2", TIMESTAMP)

    assert read_lines(tmp_path / "Log1.txt") == ["foreign"]
    assert read_lines(tmp_path / "Log2.txt")[0].endswith("changed to: 1")


def test_failed_append_returns_false(tmp_path):
    missing = tmp_path / "missing"
    sink = RotatingLogSink(missing, max_lines=5)

    assert not sink.append("MAIN.x", "1", TIMESTAMP)
    assert sink.failures == 1

    missing.mkdir()
    assert sink.append("MAIN.x", "2", TIMESTAMP)
    assert len(read_lines(missing / "Log.txt")) == 1


def test_rejects_non_positive_max_lines(tmp_path):
    with pytest.raises(ValueError):
        RotatingLogSink(tmp_path, max_lines=0)


def test_concurrent_appends(tmp_path):
    sink = RotatingLogSink(tmp_path, max_lines=7, fsync=False)

    def writer(n):
        for i in range(30):
            sink.append(f"MAIN.v{n}", str(i), TIMESTAMP)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    rotated = sorted(tmp_path.glob("Log[0-9]*.txt"))
    assert len(rotated) == 42
    assert all(len(read_lines(path)) == 7 for path in rotated)
    assert len(read_lines(tmp_path / "Log.txt")) == 6
    assert sink.entries_written == 300
