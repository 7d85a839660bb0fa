import os
import sys
from pathlib import Path

import pytest

# Ensure project root on path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from diskReclaimLib.errors import CandidateError, DriveQueryError, FolderAccessError
from diskReclaimLib.fileSystem import FileCandidate

NOW = 1_700_000_000.0


def _key(path):
    return str(Path(path))


class FakeFileSystem:
    """In-memory folders with a simulated drive: deleting a file frees its size."""

    dryrun = False

    def __init__(self, total=1000, used=0):
        self.total = total
        self.used = used
        self.files = {}
        self.dirs = set()
        self.locked = set()
        self.unreadable = set()
        self.drive_broken = False
        self.queried_roots = []
        self.deleted = []
        self.moves = []
        self.clock = NOW

    def add_dir(self, path):
        p = Path(path)
        while str(p) not in self.dirs and p != p.parent:
            self.dirs.add(str(p))
            p = p.parent

    def add_file(self, path, size=10, created=0.0, count_usage=False):
        self.add_dir(Path(path).parent)
        self.files[_key(path)] = (size, created)
        if count_usage:
            self.used += size

    def list_files(self, folder):
        folder = _key(folder)
        if folder not in self.dirs:
            raise FolderAccessError(folder + ' does not exist', folder)
        if folder in self.unreadable:
            raise FolderAccessError('permission denied ' + folder, folder)
        return [FileCandidate(p, size, created)
                for p, (size, created) in self.files.items()
                if str(Path(p).parent) == folder]

    def list_dirs(self, folder):
        folder = _key(folder)
        if folder not in self.dirs:
            raise FolderAccessError(folder + ' does not exist', folder)
        return [d for d in self.dirs if str(Path(d).parent) == folder and d != folder]

    def exists(self, path):
        return _key(path) in self.files or _key(path) in self.dirs

    def is_dir(self, path):
        return _key(path) in self.dirs

    def make_dirs(self, path):
        self.add_dir(path)

    def delete(self, path):
        path = _key(path)
        if path in self.locked:
            raise CandidateError('locked ' + path, path)
        if path not in self.files:
            raise CandidateError('gone ' + path, path)
        size, _ = self.files.pop(path)
        self.used -= size
        self.deleted.append(path)

    def move(self, src, dst):
        src, dst = _key(src), _key(dst)
        if src in self.locked:
            raise CandidateError('locked ' + src, src)
        if dst in self.files:
            raise CandidateError('destination exists ' + dst, src)
        self.files[dst] = self.files.pop(src)
        self.moves.append((src, dst))

    def drive_root(self, path):
        # every folder is its own drive so tests can see which one was measured
        if not path:
            raise DriveQueryError('no folder to resolve a drive root from')
        return _key(path)

    def disk_usage(self, root):
        self.queried_roots.append(root)
        if self.drive_broken:
            raise DriveQueryError('drive unavailable')
        return self.total, self.total - self.used

    def now(self):
        return self.clock


class RecordingLog:
    def __init__(self):
        self.records = []

    def _add(self, level, msg):
        self.records.append((level, str(msg)))

    def info(self, msg):
        self._add('INFO', msg)

    def error(self, msg):
        self._add('ERROR', msg)

    def critical(self, msg):
        self._add('CRITICAL', msg)

    def deleted(self, path):
        self._add('DELETED', path)

    def moved(self, msg):
        self._add('MOVED', msg)

    def cleanup(self, name):
        self._add('CLEANUP', name)

    def display_log_info(self):
        self._add('INFO', 'log info')

    def clean_old_logs(self, retention_days, today=None):
        self._add('INFO', 'clean logs ' + str(retention_days))
        return 0

    def messages(self, level):
        return [m for lvl, m in self.records if lvl == level]


@pytest.fixture
def fs():
    return FakeFileSystem()


@pytest.fixture
def log():
    return RecordingLog()
