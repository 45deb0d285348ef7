"""Configuration: runtime flags from env vars / CLI args, jobs from YAML."""

import argparse
import logging
import math
import os
import re
import socket
from dataclasses import dataclass, field

import yaml

from rsyslog_cron.errors import ConfigError
from rsyslog_cron.formatter import DEFAULT_TEMPLATE
from rsyslog_cron.message_queue import DEFAULT_QUEUE_SIZE
from rsyslog_cron.pinger import DEFAULT_PING_TIMEOUT

logger = logging.getLogger(__name__)

__version__ = "0.1.0"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """Parse ``1.5``, ``500ms``, ``2s`` or ``1m30s`` into seconds."""
    text = str(value).strip()
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration {value!r}")
        return seconds
    if not text or _DURATION_PART.sub("", text):
        raise ValueError(f"invalid duration {value!r}")
    return sum(float(num) * _DURATION_UNITS[unit] for num, unit in _DURATION_PART.findall(text))


@dataclass(frozen=True)
class Config:
    config_file: str = "config.yaml"
    hostname: str = ""
    ping_timeout: float = DEFAULT_PING_TIMEOUT
    queue_size: int = DEFAULT_QUEUE_SIZE
    log_level: str = "INFO"


@dataclass(frozen=True)
class JobConfig:
    name: str
    schedule: str
    command: str
    arguments: tuple[str, ...] = ()
    ping_success: str = ""
    ping_failure: str = ""


@dataclass(frozen=True)
class CronConfig:
    rsyslog_host: str
    rsyslog_port: int
    log_template: str = DEFAULT_TEMPLATE
    jobs: tuple[JobConfig, ...] = field(default_factory=tuple)

    @property
    def rsyslog_target(self) -> str:
        if ":" in self.rsyslog_host:
            return f"[{self.rsyslog_host}]:{self.rsyslog_port}"
        return f"{self.rsyslog_host}:{self.rsyslog_port}"


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run commands on a cron schedule and ship their output to a remote syslog",
    )
    parser.add_argument("--config", dest="config_file", default=None,
                        help="Cron definition file (default: config.yaml)")
    parser.add_argument("--hostname", default=None,
                        help="Overwrite system hostname")
    parser.add_argument("--ping-timeout", default=None,
                        help="Timeout for success / failure pings, e.g. 1s or 500ms (default: 1s)")
    parser.add_argument("--queue-size", type=int, default=None,
                        help="Number of log lines buffered while the collector is unreachable")
    parser.add_argument("--log-level", default=None, type=str.upper, choices=LOG_LEVELS,
                        help="Local log level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_config(argv: list[str] | None = None) -> Config:
    """Build Config from defaults <- env vars <- CLI args (highest priority)."""
    args = build_cli_parser().parse_args(argv)

    config_file = args.config_file or os.environ.get("CONFIG_FILE", Config.config_file)
    hostname = args.hostname or os.environ.get("HOSTNAME", "") or socket.gethostname()
    log_level = (args.log_level or os.environ.get("LOG_LEVEL", Config.log_level)).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level {log_level!r}, expected one of {', '.join(LOG_LEVELS)}")

    raw_timeout = args.ping_timeout or os.environ.get("PING_TIMEOUT", str(Config.ping_timeout))
    try:
        ping_timeout = parse_duration(raw_timeout)
    except ValueError as e:
        raise ConfigError(f"Invalid ping timeout: {e}") from e
    if ping_timeout <= 0:
        raise ConfigError(f"Ping timeout must be positive, got {raw_timeout!r}")

    if args.queue_size is not None:
        queue_size = args.queue_size
    else:
        try:
            queue_size = int(os.environ.get("QUEUE_SIZE", str(Config.queue_size)))
        except ValueError as e:
            raise ConfigError(f"Invalid QUEUE_SIZE: {e}") from e
    if queue_size <= 0:
        raise ConfigError(f"Queue size must be positive, got {queue_size}")

    return Config(
        config_file=config_file,
        hostname=hostname,
        ping_timeout=ping_timeout,
        queue_size=queue_size,
        log_level=log_level,
    )


def parse_target(target: str) -> tuple[str, int]:
    """Split ``host:port`` or ``[v6addr]:port`` into (host, port)."""
    target = str(target or "").strip()
    if target.startswith("["):
        host, sep, port = target[1:].partition("]:")
    else:
        host, sep, port = target.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConfigError(f"rsyslog_target must look like host:port, got {target!r}")
    port_num = int(port)
    if not 0 < port_num < 65536:
        raise ConfigError(f"rsyslog_target port out of range: {port_num}")
    return host, port_num


def _parse_job(index: int, raw) -> JobConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"Job #{index + 1} must be a mapping")
    for key in ("name", "schedule", "cmd"):
        if not raw.get(key):
            raise ConfigError(f"Job #{index + 1} is missing required key {key!r}")

    args = raw.get("args") or []
    if not isinstance(args, list):
        raise ConfigError(f"Job {raw['name']!r}: 'args' must be a list")

    return JobConfig(
        name=str(raw["name"]),
        schedule=str(raw["schedule"]),
        command=str(raw["cmd"]),
        arguments=tuple(str(a) for a in args),
        ping_success=str(raw.get("ping_success") or ""),
        ping_failure=str(raw.get("ping_failure") or ""),
    )


def parse_cron_config(data) -> CronConfig:
    """Validate the parsed YAML document and build a CronConfig."""
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a YAML mapping")

    host, port = parse_target(data.get("rsyslog_target", ""))

    raw_jobs = data.get("jobs") or []
    if not isinstance(raw_jobs, list):
        raise ConfigError("'jobs' must be a list")
    jobs = tuple(_parse_job(i, raw) for i, raw in enumerate(raw_jobs))

    return CronConfig(
        rsyslog_host=host,
        rsyslog_port=port,
        log_template=data.get("log_template") or DEFAULT_TEMPLATE,
        jobs=jobs,
    )


def load_cron_config(path: str) -> CronConfig:
    """Read and validate the YAML cron definition file at *path*."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Unable to read config file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Unable to parse config file: {e}") from e

    config = parse_cron_config(data)
    logger.info("Loaded %d job(s) from %s", len(config.jobs), path)
    return config
