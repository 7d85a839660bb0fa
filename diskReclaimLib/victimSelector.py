from pathlib import Path

from diskReclaimLib.errors import FolderAccessError


def age_key(candidate):
    # identical timestamps fall back to the lexically smaller path
    return (candidate.created, str(candidate.path))


class FolderSetSource:
    """Oldest files across a list of flat monitored folders."""

    def __init__(self, fs, log, folders):
        self.fs = fs
        self.log = log
        self.folders = list(folders)

    def _oldest_in(self, folder, exclude):
        try:
            files = self.fs.list_files(folder)
        except FolderAccessError as e:
            self.log.error('skipping folder: ' + str(e))
            return None
        files = [f for f in files if str(f.path) not in exclude]
        if not files:
            return None
        return min(files, key=age_key)

    def oldest_per_folder(self, exclude=()):
        oldest = []
        for folder in self.folders:
            candidate = self._oldest_in(folder, exclude)
            if candidate is not None:
                oldest.append(candidate)
        return oldest

    def oldest_across_folders(self, exclude=()):
        oldest = self.oldest_per_folder(exclude)
        if not oldest:
            return None
        return min(oldest, key=age_key)

    def candidates(self, exclude=()):
        return sorted(self.oldest_per_folder(exclude), key=age_key)

    def describe(self):
        return str(len(self.folders)) + ' monitored folders'


class ReserveTreeSource:
    """Oldest file one level down in the reserve tree, one victim at a time."""

    def __init__(self, fs, log, reserve_root):
        self.fs = fs
        self.log = log
        self.reserve_root = reserve_root

    def oldest_in_reserve(self, exclude=()):
        try:
            subdirs = self.fs.list_dirs(self.reserve_root)
        except FolderAccessError as e:
            self.log.error('cannot scan reserve: ' + str(e))
            return None
        per_folder = FolderSetSource(self.fs, self.log, sorted(subdirs))
        return per_folder.oldest_across_folders(exclude)

    def candidates(self, exclude=()):
        oldest = self.oldest_in_reserve(exclude)
        return [] if oldest is None else [oldest]

    def describe(self):
        return 'reserve ' + str(Path(self.reserve_root))
