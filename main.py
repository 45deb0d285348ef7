"""Entry point: run cron jobs and forward their output to remote syslog."""

import logging
import signal
import sys
import threading

from rsyslog_cron.config import load_config, load_cron_config
from rsyslog_cron.errors import ConfigError
from rsyslog_cron.executor import JobExecutor
from rsyslog_cron.formatter import MessageFormatter
from rsyslog_cron.forwarder import SyslogForwarder
from rsyslog_cron.message_queue import MessageQueue
from rsyslog_cron.pinger import Pinger
from rsyslog_cron.scheduler import JobScheduler
from rsyslog_cron.tcp_client import SyslogConnection

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stdout,
    )

    try:
        config = load_config(argv)
        logging.getLogger().setLevel(config.log_level)
        logging.getLogger("apscheduler").setLevel(logging.WARNING)

        cron_config = load_cron_config(config.config_file)
        formatter = MessageFormatter(cron_config.log_template, config.hostname)
    except ConfigError as e:
        logger.critical("%s", e)
        sys.exit(1)

    message_queue = MessageQueue(config.queue_size)
    pinger = Pinger(timeout=config.ping_timeout)
    scheduler = JobScheduler()

    try:
        for job in cron_config.jobs:
            scheduler.add_job(job, JobExecutor(job, message_queue, pinger))
    except ConfigError as e:
        logger.critical("%s", e)
        sys.exit(1)

    shutdown_event = threading.Event()

    def signal_handler(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()
        scheduler.shutdown()
        pinger.shutdown()
        # The forwarder may be blocked waiting for the next message.
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler.start()
    logger.info("Started %d job(s), shipping logs to %s as host %r",
                len(cron_config.jobs), cron_config.rsyslog_target, config.hostname)

    connection = SyslogConnection(cron_config.rsyslog_host, cron_config.rsyslog_port)
    forwarder = SyslogForwarder(connection, message_queue, formatter, shutdown_event)
    forwarder.run()


if __name__ == "__main__":
    main()
