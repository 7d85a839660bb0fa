import os
import shutil
import time
from collections import namedtuple
from pathlib import Path

from diskReclaimLib.driveUsage import drive_root
from diskReclaimLib.errors import CandidateError, DriveQueryError, FolderAccessError

# metadata cached when the file was listed, re-listed every iteration
FileCandidate = namedtuple('FileCandidate', ['path', 'size', 'created'])

ON_WINDOWS = os.name == 'nt'


def creation_time(st):
    birth = getattr(st, 'st_birthtime', None)
    if birth:
        return birth
    # st_ctime is the creation time on Windows, elsewhere fall back to mtime like find -mtime
    if ON_WINDOWS:
        return st.st_ctime
    return st.st_mtime


def _key(path):
    return str(Path(path).expanduser())


class LocalFileSystem:
    """Synchronous filesystem boundary.

    Every call reports its own failure as one of the errors.py kinds instead of
    raising a bare OSError, so callers can recover per file or per folder.
    """

    dryrun = False

    def list_files(self, folder):
        folder = Path(folder).expanduser()
        if not folder.is_dir():
            raise FolderAccessError(str(folder) + ' does not exist', folder)
        files = []
        try:
            with os.scandir(folder) as entries:
                for entry in entries:
                    try:
                        if not entry.is_file(follow_symlinks=False):
                            continue
                        st = entry.stat(follow_symlinks=False)
                    except FileNotFoundError:
                        # removed between scandir and stat
                        continue
                    files.append(FileCandidate(entry.path, st.st_size, creation_time(st)))
        except OSError as e:
            raise FolderAccessError('cannot list ' + str(folder) + ': ' + str(e), folder) from e
        return files

    def list_dirs(self, folder):
        folder = Path(folder).expanduser()
        if not folder.is_dir():
            raise FolderAccessError(str(folder) + ' does not exist', folder)
        try:
            with os.scandir(folder) as entries:
                return [entry.path for entry in entries if entry.is_dir(follow_symlinks=False)]
        except OSError as e:
            raise FolderAccessError('cannot list ' + str(folder) + ': ' + str(e), folder) from e

    def exists(self, path):
        return Path(path).expanduser().exists()

    def is_dir(self, path):
        return Path(path).expanduser().is_dir()

    def make_dirs(self, path):
        try:
            Path(path).expanduser().mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FolderAccessError('cannot create ' + str(path) + ': ' + str(e), path) from e

    def delete(self, path):
        try:
            Path(path).unlink()
        except OSError as e:
            raise CandidateError('cannot delete ' + str(path) + ': ' + str(e), path) from e

    def move(self, src, dst):
        f = Path(src)
        t = Path(dst)
        if t.exists():
            raise CandidateError('destination exists, not overwriting ' + str(t), src)
        try:
            # shutil.move copies across devices when the reserve is on another drive
            shutil.move(str(f), str(t))
        except OSError as e:
            msg = 'cannot move ' + str(f) + ' -> ' + str(t) + ': ' + str(e)
            if f.exists() and t.exists():
                # copied but the source could not be unlinked, drop the copy
                try:
                    t.unlink()
                except OSError as e2:
                    msg += ', partial copy left behind: ' + str(e2)
            raise CandidateError(msg, src) from e

    def drive_root(self, path):
        return drive_root(path)

    def disk_usage(self, root):
        try:
            usage = shutil.disk_usage(root)
        except OSError as e:
            raise DriveQueryError('cannot read capacity of ' + str(root) + ': ' + str(e)) from e
        return usage.total, usage.free

    def now(self):
        return time.time()


class DryRunFileSystem(LocalFileSystem):
    """Reads pass through, mutations only change an in-memory view.

    Deleted and moved files disappear from listings, moved files show up at
    their destination and deleted bytes count as free space, so a dry run
    picks the same files and stops where a real run would.
    """

    dryrun = True

    def __init__(self, log):
        self.log = log
        self.freed = 0
        self.gone = set()
        self.new_dirs = set()
        # destination folder -> {path: FileCandidate}
        self.moved_in = {}

    def _virtual(self, path):
        key = _key(path)
        return self.moved_in.get(str(Path(key).parent), {}).get(key)

    def list_files(self, folder):
        key = _key(folder)
        if key in self.new_dirs and not Path(key).is_dir():
            files = []
        else:
            files = super().list_files(folder)
        files = [f for f in files if _key(f.path) not in self.gone]
        return files + list(self.moved_in.get(key, {}).values())

    def list_dirs(self, folder):
        key = _key(folder)
        dirs = [] if key in self.new_dirs and not Path(key).is_dir() else super().list_dirs(folder)
        dirs += [d for d in sorted(self.new_dirs) if str(Path(d).parent) == key and d not in dirs]
        return dirs

    def exists(self, path):
        key = _key(path)
        if self._virtual(key) is not None or key in self.new_dirs:
            return True
        if key in self.gone:
            return False
        return super().exists(path)

    def is_dir(self, path):
        return _key(path) in self.new_dirs or super().is_dir(path)

    def make_dirs(self, path):
        p = Path(_key(path))
        if self.is_dir(p):
            return
        self.log.info('dryrun mkdir ' + str(p))
        while not self.is_dir(p) and p != p.parent:
            self.new_dirs.add(str(p))
            p = p.parent

    def _take(self, path):
        """Metadata of path, removing it from the dry view."""
        key = _key(path)
        virtual = self._virtual(key)
        if virtual is not None:
            del self.moved_in[str(Path(key).parent)][key]
            return virtual
        if key in self.gone:
            raise CandidateError('already removed ' + key, path)
        try:
            st = os.stat(key)
        except OSError as e:
            raise CandidateError('cannot stat ' + key + ': ' + str(e), path) from e
        self.gone.add(key)
        return FileCandidate(key, st.st_size, creation_time(st))

    def delete(self, path):
        self.freed += self._take(path).size

    def move(self, src, dst):
        if self.exists(dst):
            raise CandidateError('destination exists, not overwriting ' + str(dst), src)
        meta = self._take(src)
        key = _key(dst)
        self.moved_in.setdefault(str(Path(key).parent), {})[key] = FileCandidate(key, meta.size, meta.created)

    def disk_usage(self, root):
        total, free = super().disk_usage(root)
        return total, min(total, free + self.freed)
