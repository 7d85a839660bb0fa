# every failure the cleaner recovers from is one of these
class ReclaimError(RuntimeError):
    pass


class ConfigError(ReclaimError):
    """Config file missing or unparseable, the run falls back to defaults."""


class DriveQueryError(ReclaimError):
    """Drive root could not be resolved or its capacity read, treated as a full drive."""


class CandidateError(ReclaimError):
    """A single file could not be deleted or moved, it is skipped."""

    def __init__(self, msg, path):
        super().__init__(msg)
        self.path = path


class FolderAccessError(ReclaimError):
    """A folder is missing or unreadable, it is left out of the current scan."""

    def __init__(self, msg, folder):
        super().__init__(msg)
        self.folder = folder
