import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

from diskReclaimLib.errors import ConfigError

CONFIG_FILENAME = 'disk_cleaner_config.json'

EXAMPLE_FOLDERS = ('/path/to/watched/folder1', '/path/to/watched/folder2')

# key names written by the older C# build of the cleaner
ALIASES = {
    'FoldersPaths': 'folders',
    'DiskUsageThreshold': 'disk_usage_threshold',
    'LogRetentionDays': 'log_retention_days',
    'ReserveFolderPath': 'reserve_folder',
    'MinFileAgeMinutes': 'min_file_age_minutes',
}


@dataclass(frozen=True)
class AppConfig:
    folders: tuple = field(default_factory=tuple)
    disk_usage_threshold: int = 80
    log_retention_days: int = 10
    reserve_folder: str = None
    min_file_age_minutes: int = 60

    @property
    def relocating(self):
        return bool(self.reserve_folder)

    def to_dict(self):
        d = asdict(self)
        d['folders'] = list(self.folders)
        return d

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ConfigError('config document must be an object')
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            key = ALIASES.get(key, key)
            if key in known:
                kwargs[key] = value

        folders = kwargs.get('folders', ())
        if not isinstance(folders, (list, tuple)) or not all(isinstance(f, str) for f in folders):
            raise ConfigError('folders must be a list of paths')
        kwargs['folders'] = tuple(folders)

        for key in ('disk_usage_threshold', 'log_retention_days', 'min_file_age_minutes'):
            if key in kwargs and (isinstance(kwargs[key], bool) or not isinstance(kwargs[key], int)):
                raise ConfigError(key + ' must be an integer')
        if not 0 <= kwargs.get('disk_usage_threshold', 80) <= 100:
            raise ConfigError('disk_usage_threshold must be between 0 and 100')
        if kwargs.get('log_retention_days', 10) < 0 or kwargs.get('min_file_age_minutes', 60) < 0:
            raise ConfigError('retention and age must not be negative')
        reserve = kwargs.get('reserve_folder')
        if reserve is not None and not isinstance(reserve, str):
            raise ConfigError('reserve_folder must be a path')
        return cls(**kwargs)


def default_config():
    return AppConfig(folders=EXAMPLE_FOLDERS)


def save_config(config, path, log):
    try:
        Path(path).write_text(json.dumps(config.to_dict(), indent=4) + '\n', encoding='utf-8')
    except OSError as e:
        log.error('cannot save config ' + str(path) + ': ' + str(e))


def load_config(path, log):
    """Load the run's configuration.

    A missing file is created with example values. Anything unreadable is
    logged and replaced by an all-defaults AppConfig, the run goes on.
    """
    path = Path(path)
    if not path.exists():
        config = default_config()
        log.info('no config found, writing defaults to ' + str(path))
        save_config(config, path, log)
        return config
    try:
        return _parse(path)
    except ConfigError as e:
        log.error('cannot load config ' + str(path) + ': ' + str(e))
        return AppConfig()


def _parse(path):
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        raise ConfigError(str(e)) from e
    return AppConfig.from_dict(data)
