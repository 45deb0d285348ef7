"""Runs a configured job and ships its output to the message queue."""

import logging
import subprocess
import threading
import time
from dataclasses import replace

from rsyslog_cron.config import JobConfig
from rsyslog_cron.line_writer import LineWriter
from rsyslog_cron.message_queue import MessageQueue
from rsyslog_cron.models import ExecutionResult, Outcome, SEVERITY_ERROR, SEVERITY_INFO
from rsyslog_cron.pinger import Pinger

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


def _pump(stream, writer: LineWriter):
    """Copy a child pipe into *writer* until EOF, then flush the last line."""
    try:
        for chunk in iter(lambda: stream.read(READ_CHUNK_SIZE), b""):
            writer.write(chunk)
    finally:
        stream.close()
        writer.flush()


class JobExecutor:
    """Callable registered with the scheduler, one instance per job.

    Every call is an independent run with its own pair of line writers, so
    overlapping runs of the same job do not share state.
    """

    def __init__(self, job: JobConfig, message_queue: MessageQueue, pinger: Pinger,
                 popen=subprocess.Popen):
        self._job = job
        self._queue = message_queue
        self._pinger = pinger
        self._popen = popen

    @property
    def job(self) -> JobConfig:
        return self._job

    def __call__(self) -> ExecutionResult:
        return self.run()

    def run(self) -> ExecutionResult:
        stdout = LineWriter(self._job.name, self._queue, SEVERITY_INFO)
        stderr = LineWriter(self._job.name, self._queue, SEVERITY_ERROR)

        stdout.write("[SYS] Starting job\n")
        logger.info("Starting job %r", self._job.name)

        t0 = time.monotonic()
        result = self._execute(stdout, stderr)
        duration = time.monotonic() - t0
        result = replace(result, duration_seconds=duration)

        if result.outcome is Outcome.SUCCESS:
            stdout.write("[SYS] Command execution successful\n")
            logger.info("Job %r completed successfully in %.2fs", self._job.name, duration)
            self._ping(self._job.ping_success, stderr)
        elif result.outcome is Outcome.EXIT_CODE:
            stderr.write(f"[SYS] Command exited with unexpected exit code {result.exit_code}\n")
            logger.warning("Job %r exited with code %d", self._job.name, result.exit_code)
            self._ping(self._job.ping_failure, stderr)
        else:
            stderr.write(f"[SYS] Execution caused error: {result.error}\n")
            logger.warning("Job %r could not be executed: %s", self._job.name, result.error)
            self._ping(self._job.ping_failure, stderr)

        return result

    def _execute(self, stdout: LineWriter, stderr: LineWriter) -> ExecutionResult:
        try:
            proc = self._popen(
                [self._job.command, *self._job.arguments],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
            )
        except (OSError, ValueError) as e:
            return ExecutionResult(outcome=Outcome.EXEC_ERROR, error=str(e))

        pumps = [
            threading.Thread(target=_pump, args=(proc.stdout, stdout), daemon=True),
            threading.Thread(target=_pump, args=(proc.stderr, stderr), daemon=True),
        ]
        for t in pumps:
            t.start()
        returncode = proc.wait()
        for t in pumps:
            t.join()

        if returncode == 0:
            return ExecutionResult(outcome=Outcome.SUCCESS, exit_code=0)
        return ExecutionResult(outcome=Outcome.EXIT_CODE, exit_code=returncode)

    def _ping(self, url: str, stderr: LineWriter):
        def report(failed_url, error):
            stderr.write(f"[SYS] Ping to URL {failed_url!r} caused an error: {error}\n")

        self._pinger.dispatch(url, on_error=report)
