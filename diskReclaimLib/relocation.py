from pathlib import Path

from diskReclaimLib.errors import CandidateError, FolderAccessError
from diskReclaimLib.victimSelector import age_key


def free_name(fs, folder, name):
    """First of name, name_1, name_2, ... that does not exist in folder."""
    t = Path(folder, name)
    if not fs.exists(t):
        return t
    stem = Path(name).stem
    suffix = Path(name).suffix
    n = 1
    while True:
        t = Path(folder, stem + '_' + str(n) + suffix)
        if not fs.exists(t):
            return t
        n += 1


class RelocationStage:
    def __init__(self, fs, log):
        self.fs = fs
        self.log = log

    def relocate(self, monitor_folders, reserve_root, min_age_minutes, now=None):
        if now is None:
            now = self.fs.now()
        cutoff = now - min_age_minutes * 60
        moved = 0
        for folder in monitor_folders:
            moved += self._relocate_folder(folder, reserve_root, cutoff)
        verb = 'dryrun would move ' if self.fs.dryrun else 'moved '
        self.log.info(verb + str(moved) + ' files older than ' + str(min_age_minutes)
                      + ' minutes to ' + str(reserve_root))
        return moved

    def _relocate_folder(self, folder, reserve_root, cutoff):
        # retain the monitored folder's name under the reserve
        target = Path(reserve_root, Path(folder).expanduser().name)
        try:
            files = self.fs.list_files(folder)
            self.fs.make_dirs(target)
        except FolderAccessError as e:
            self.log.error('skipping folder for relocation: ' + str(e))
            return 0

        old = sorted((f for f in files if f.created <= cutoff), key=age_key)
        moved = 0
        for f in old:
            t = free_name(self.fs, target, Path(f.path).name)
            try:
                self.fs.move(f.path, t)
            except CandidateError as e:
                self.log.error(str(e))
                continue
            if self.fs.dryrun:
                self.log.info('dryrun move ' + str(f.path) + ' -> ' + str(t))
            else:
                self.log.moved(str(f.path) + ' -> ' + str(t))
            moved += 1
        return moved
