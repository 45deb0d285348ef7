"""Exception hierarchy for rsyslog-cron."""


class RsyslogCronError(Exception):
    """Base class for all rsyslog-cron errors."""


class ConfigError(RsyslogCronError):
    """Invalid configuration detected at startup. Fatal."""


class FormatError(ConfigError):
    """Malformed log template or unknown placeholder."""


class PingError(RsyslogCronError):
    """A success / failure ping did not return HTTP 2xx."""
