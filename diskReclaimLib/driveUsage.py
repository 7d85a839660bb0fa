import os
from collections import namedtuple

from diskReclaimLib.errors import DriveQueryError


def drive_root(path):
    """Mount point of the drive holding path, path itself need not exist yet."""
    if not path:
        raise DriveQueryError('no folder to resolve a drive root from')
    p = os.path.abspath(os.path.expanduser(str(path)))
    while not os.path.exists(p):
        parent = os.path.dirname(p)
        if parent == p:
            raise DriveQueryError('cannot resolve drive root of ' + str(path))
        p = parent
    while not os.path.ismount(p):
        parent = os.path.dirname(p)
        if parent == p:
            break
        p = parent
    return p


class DriveUsageSample(namedtuple('DriveUsageSample', ['total', 'free'])):
    __slots__ = ()

    @property
    def used(self):
        return self.total - self.free

    @property
    def percent_used(self):
        if self.total <= 0:
            raise DriveQueryError('drive reports zero capacity')
        return self.used / self.total * 100


def format_size(num_bytes):
    suffixes = ['B', 'KB', 'MB', 'GB', 'TB']
    number = float(num_bytes)
    counter = 0
    while round(number / 1024) >= 1 and counter < len(suffixes) - 1:
        number /= 1024
        counter += 1
    return '{:0.2f} {}'.format(number, suffixes[counter])


class DriveUsageProbe:
    def __init__(self, fs, log, path):
        self.fs = fs
        self.log = log
        self.path = path

    def sample(self):
        root = self.fs.drive_root(self.path)
        total, free = self.fs.disk_usage(root)
        return DriveUsageSample(total, free)

    def percent_used(self):
        # never cached, the loop relies on a fresh reading after every removal
        try:
            return self.sample().percent_used
        except DriveQueryError as e:
            self.log.error('drive query failed, assuming drive is full: ' + str(e))
            return 100.0

    def quota_string(self):
        return '{:0.2f}%'.format(self.percent_used())
