import time

from diskReclaimLib.driveUsage import format_size
from diskReclaimLib.errors import CandidateError

THRESHOLD_REACHED = 'threshold reached'
EXHAUSTED = 'no candidates'
NO_PROGRESS = 'no progress'
CANCELLED = 'cancelled'

PACING_SECONDS = 0.5


def sleep_pacing():
    time.sleep(PACING_SECONDS)


class ReclaimOutcome:
    def __init__(self):
        self.bytes_freed = 0
        self.iterations = 0
        self.removed = []
        self.reason = None
        self.final_usage = None

    def __repr__(self):
        return 'ReclaimOutcome(reason={!r}, iterations={}, removed={}, freed={})'.format(
            self.reason, self.iterations, len(self.removed), self.bytes_freed)


class ReclaimLoop:
    """Delete candidates oldest first until usage is at or below the threshold.

    source decides how many victims one iteration gets: a FolderSetSource hands
    out one per monitored folder, a ReserveTreeSource a single one. Usage is
    re-measured after every removal and the loop stops the moment it is under
    the threshold, even in the middle of a batch. An iteration that removes
    nothing ends the run so locked files cannot make it spin forever.

    pace is called between iterations, cancel (if given) before each one.
    """

    def __init__(self, fs, log, probe, source, threshold, pace=None, cancel=None):
        self.fs = fs
        self.log = log
        self.probe = probe
        self.source = source
        self.threshold = threshold
        self.pace = sleep_pacing if pace is None else pace
        self.cancel = cancel

    def needs_cleanup(self, used):
        return used > self.threshold

    def run(self):
        outcome = ReclaimOutcome()
        # paths removed in this run are never handed out again
        acted = set()

        while True:
            if self.cancel is not None and self.cancel():
                outcome.reason = CANCELLED
                self.log.info('cleanup cancelled after ' + str(outcome.iterations) + ' iterations')
                break

            used = self.probe.percent_used()
            outcome.final_usage = used
            if not self.needs_cleanup(used):
                outcome.reason = THRESHOLD_REACHED
                self.log.info('disk usage {:0.2f}% is within threshold {}%'.format(used, self.threshold))
                break

            outcome.iterations += 1
            self.log.info('cleanup iteration #' + str(outcome.iterations)
                          + ', disk usage {:0.2f}%'.format(used))

            batch = self.source.candidates(acted)
            if not batch:
                outcome.reason = EXHAUSTED
                self.log.info('no more files to delete in ' + self.source.describe())
                break

            progressed = False
            for candidate in batch:
                if not self._remove(candidate, outcome, acted):
                    continue
                progressed = True
                used = self.probe.percent_used()
                outcome.final_usage = used
                if not self.needs_cleanup(used):
                    break

            if not progressed:
                outcome.reason = NO_PROGRESS
                self.log.info('could not delete any file in this iteration')
                break
            if not self.needs_cleanup(used):
                outcome.reason = THRESHOLD_REACHED
                self.log.info('reached target disk usage {:0.2f}%'.format(used))
                break

            self.pace()

        verb = 'dryrun would free ' if self.fs.dryrun else 'total freed '
        self.log.info(verb + format_size(outcome.bytes_freed)
                      + ' in ' + str(len(outcome.removed)) + ' files')
        return outcome

    def _remove(self, candidate, outcome, acted):
        try:
            self.fs.delete(candidate.path)
        except CandidateError as e:
            self.log.error(str(e))
            return False
        acted.add(str(candidate.path))
        outcome.removed.append(candidate.path)
        outcome.bytes_freed += candidate.size
        if self.fs.dryrun:
            self.log.info('dryrun delete ' + str(candidate.path) + ', ' + format_size(candidate.size))
        else:
            self.log.deleted(str(candidate.path))
            self.log.info('freed ' + format_size(candidate.size))
        return True
