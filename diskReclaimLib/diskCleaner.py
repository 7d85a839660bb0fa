import argparse
import time
from datetime import datetime

from diskReclaimLib.appConfig import CONFIG_FILENAME, load_config
from diskReclaimLib.driveUsage import DriveUsageProbe
from diskReclaimLib.fileSystem import DryRunFileSystem, LocalFileSystem
from diskReclaimLib.logSink import LogSink
from diskReclaimLib.reclaimLoop import ReclaimLoop
from diskReclaimLib.relocation import RelocationStage
from diskReclaimLib.victimSelector import FolderSetSource, ReserveTreeSource


class DiskCleaner:
    def __init__(self, config, log, fs, pace=None, cancel=None):
        self.config = config
        self.log = log
        self.fs = fs
        self.pace = pace
        self.cancel = cancel

    def run(self):
        self.log.info('=== starting disk cleanup ===')
        self.log.info('started ' + datetime.now().strftime('%d-%m-%Y %H:%M:%S'))
        try:
            return self._run()
        except Exception as e:
            self.log.critical('cleanup failed: ' + repr(e))
            return None

    def _run(self):
        config = self.config
        self.log.display_log_info()
        self.log.info('cleaning logs older than ' + str(config.log_retention_days) + ' days')
        self.log.clean_old_logs(config.log_retention_days)

        if not config.folders:
            self.log.error('no folders to clean are configured')
            return None
        existing = [f for f in config.folders if self.fs.is_dir(f)]
        if not existing:
            self.log.error('none of the configured folders exist')
            return None

        if config.relocating:
            self.log.info('==== move to reserve ' + config.reserve_folder)
            RelocationStage(self.fs, self.log).relocate(
                config.folders, config.reserve_folder, config.min_file_age_minutes)
            probe = DriveUsageProbe(self.fs, self.log, config.reserve_folder)
            source = ReserveTreeSource(self.fs, self.log, config.reserve_folder)
        else:
            probe = DriveUsageProbe(self.fs, self.log, config.folders[0])
            source = FolderSetSource(self.fs, self.log, config.folders)

        self.log.info('disk usage ' + probe.quota_string()
                      + ' (threshold ' + str(config.disk_usage_threshold) + '%)')
        loop = ReclaimLoop(self.fs, self.log, probe, source, config.disk_usage_threshold,
                           pace=self.pace, cancel=self.cancel)
        outcome = loop.run()
        self.log.info('cleanup finished: ' + outcome.reason + ', disk usage ' + probe.quota_string())
        return outcome


def deadline(seconds):
    end = time.monotonic() + seconds
    return lambda: time.monotonic() >= end


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Free disk space by deleting the oldest files in watched folders.')
    parser.add_argument('--config', default=CONFIG_FILENAME, help='Path of the JSON config, created with defaults if missing.')
    parser.add_argument('--logs', default='logs', help='Folder for the daily log files.')
    parser.add_argument('--dryrun', action='store_true', help='Only log what would be moved or deleted.')
    parser.add_argument('--timeout', type=float, help='Stop reclaiming after this many seconds.')
    parser.add_argument('--exit-delay', type=float, default=5, help='Seconds to keep the console open at the end.')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    log = LogSink(args.logs)
    try:
        log.info('loading config ' + args.config)
        config = load_config(args.config, log)
        log.info('folders to clean: ' + str(len(config.folders)))
        log.info('disk usage threshold: ' + str(config.disk_usage_threshold) + '%')
        log.info('log retention: ' + str(config.log_retention_days) + ' days')
        if config.relocating:
            log.info('reserve folder: ' + config.reserve_folder
                     + ', min file age ' + str(config.min_file_age_minutes) + ' minutes')

        fs = DryRunFileSystem(log) if args.dryrun else LocalFileSystem()
        cancel = deadline(args.timeout) if args.timeout else None
        DiskCleaner(config, log, fs, cancel=cancel).run()
    except Exception as e:
        log.critical('fatal error: ' + repr(e))

    log.info('program finished')
    if args.exit_delay > 0:
        print('closing in', args.exit_delay, 'seconds...')
        time.sleep(args.exit_delay)
    log.close()
    # exit status is always success, failures only show up in the log
    return 0
