import logging
import os
import re
from datetime import date, datetime, timedelta
from pathlib import Path

CLEANUP = 23
MOVED = 24
DELETED = 25

logging.addLevelName(CLEANUP, 'CLEANUP')
logging.addLevelName(MOVED, 'MOVED')
logging.addLevelName(DELETED, 'DELETED')

LOG_PREFIX = 'disk_cleaner_'
LOG_PATTERN = LOG_PREFIX + '*.log'
_DATE_RE = re.compile(re.escape(LOG_PREFIX) + r'(\d{8})\.log$')


def log_filename(day):
    return LOG_PREFIX + day.strftime('%Y%m%d') + '.log'


class LogSink:
    """Leveled log events to the console and one log file per day.

    Built once in main() and handed to every component that logs.
    """

    def __init__(self, logs_dir='logs', name='diskReclaim', today=None, stream=None):
        self.logs_dir = Path(logs_dir)
        self.today = today or date.today()
        self.log_file = self.logs_dir / log_filename(self.today)

        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S')
        stream_handler = logging.StreamHandler(stream)
        stream_handler.setFormatter(formatter)
        self.logger.addHandler(stream_handler)

        try:
            created = not self.logs_dir.is_dir()
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
        except OSError as e:
            self.error('cannot write log file, console only: ' + str(e))
            return
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)
        if created:
            self.info('created log folder ' + str(self.logs_dir))

    def info(self, msg):
        self.logger.info(msg)

    def error(self, msg):
        self.logger.error(msg)

    def critical(self, msg):
        self.logger.critical(msg)

    def deleted(self, path):
        self.logger.log(DELETED, 'deleted file: ' + str(path))

    def moved(self, msg):
        self.logger.log(MOVED, 'moved file: ' + msg)

    def cleanup(self, name):
        self.logger.log(CLEANUP, 'deleted old log: ' + str(name))

    def close(self):
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def log_files(self):
        if not self.logs_dir.is_dir():
            return []
        return sorted(self.logs_dir.glob(LOG_PATTERN))

    def clean_old_logs(self, retention_days, today=None):
        today = today or self.today
        if not self.logs_dir.is_dir():
            self.info('log folder does not exist, nothing to clean')
            return 0
        boundary = today - timedelta(days=retention_days)
        deleted = 0
        for f in self.log_files():
            if f.name == self.log_file.name or f.name == log_filename(today):
                continue
            try:
                if _log_date(f) > boundary:
                    continue
                f.unlink()
            except OSError as e:
                self.error('cannot delete old log ' + f.name + ': ' + str(e))
                continue
            self.cleanup(f.name)
            deleted += 1
        if deleted:
            self.info('log cleanup done, deleted ' + str(deleted) + ' files')
        else:
            self.info('no old logs to delete')
        return deleted

    def display_log_info(self):
        if not self.logs_dir.is_dir():
            self.info('log folder does not exist')
            return
        files = sorted(self.log_files(), key=os.path.getmtime)
        self.info('log folder: ' + str(self.logs_dir))
        self.info('current log file: ' + self.log_file.name)
        self.info('log files: ' + str(len(files)))
        if files:
            self.info('oldest log: ' + files[0].name)
            self.info('newest log: ' + files[-1].name)


def _log_date(path):
    m = _DATE_RE.search(path.name)
    if m:
        try:
            return datetime.strptime(m.group(1), '%Y%m%d').date()
        except ValueError:
            pass
    return date.fromtimestamp(path.stat().st_mtime)
