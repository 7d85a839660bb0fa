import io
import os
import time
from datetime import date

import pytest

from diskReclaimLib.logSink import LogSink, log_filename

TODAY = date(2026, 10, 18)


@pytest.fixture
def sink(tmp_path):
    stream = io.StringIO()
    s = LogSink(tmp_path / 'logs', name='test.' + tmp_path.name, today=TODAY, stream=stream)
    s.stream = stream
    yield s
    s.close()


def touch_log(sink, day):
    path = sink.logs_dir / log_filename(day)
    path.write_text('old\n')
    return path


def test_levels_go_to_console_and_daily_file(sink):
    sink.info('hello')
    sink.deleted('/data/a/f.bin')
    sink.moved('/a -> /b')
    sink.error('boom')

    assert sink.log_file.name == 'disk_cleaner_20261018.log'
    text = sink.log_file.read_text()
    assert '[INFO] hello' in text
    assert '[DELETED] deleted file: /data/a/f.bin' in text
    assert '[MOVED] moved file: /a -> /b' in text
    assert '[ERROR] boom' in text
    assert '[DELETED]' in sink.stream.getvalue()


def test_retention_boundary(sink):
    past_boundary = touch_log(sink, date(2026, 10, 7))
    at_boundary = touch_log(sink, date(2026, 10, 8))
    inside = touch_log(sink, date(2026, 10, 9))

    deleted = sink.clean_old_logs(10)

    assert deleted == 2
    assert not past_boundary.exists()
    assert not at_boundary.exists()
    assert inside.exists()
    assert sink.log_file.exists()
    assert '[CLEANUP] deleted old log: disk_cleaner_20261008.log' in sink.log_file.read_text()


def test_current_log_is_never_deleted(sink):
    sink.info('today')
    old = sink.log_file.stat().st_mtime - 40 * 86400
    os.utime(sink.log_file, (old, old))

    assert sink.clean_old_logs(0) == 0
    assert sink.log_file.exists()


def test_unparseable_name_uses_mtime(sink):
    odd = sink.logs_dir / 'disk_cleaner_backup.log'
    odd.write_text('x')
    old = time.mktime(date(2026, 9, 1).timetuple())
    os.utime(odd, (old, old))
    other = sink.logs_dir / 'unrelated.txt'
    other.write_text('x')
    os.utime(other, (old, old))

    assert sink.clean_old_logs(10) == 1
    assert not odd.exists()
    assert other.exists()


def test_missing_log_folder(tmp_path):
    sink = LogSink(tmp_path / 'logs', name='test.missing', today=TODAY, stream=io.StringIO())
    sink.close()
    for f in (tmp_path / 'logs').iterdir():
        f.unlink()
    (tmp_path / 'logs').rmdir()

    assert sink.clean_old_logs(10) == 0


def test_display_log_info(sink):
    touch_log(sink, date(2026, 10, 1))
    sink.display_log_info()

    text = sink.log_file.read_text()
    assert 'log files: 2' in text
    assert 'current log file: disk_cleaner_20261018.log' in text
