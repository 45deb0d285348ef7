"""Render messages into RFC 3164 style syslog lines."""

import re
import string
from datetime import datetime

from rsyslog_cron.errors import FormatError
from rsyslog_cron.models import Message, SEVERITY_INFO

FACILITY_LOCAL0 = 16

DEFAULT_TEMPLATE = "<{priority}>{timestamp} {hostname} {job_name}: {text}"

PLACEHOLDERS = ("priority", "timestamp", "hostname", "job_name", "severity", "text")

# strftime("%b") follows the process locale, syslog wants English.
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# {{ .Message }} and friends, which str.format would read as escaped braces.
_GO_TEMPLATE_ACTION = re.compile(r"\{\{-?\s*\.")

_LINE_BREAKS = str.maketrans({"\r": " ", "\n": " "})


def syslog_priority(severity: int, facility: int = FACILITY_LOCAL0) -> int:
    return facility * 8 + severity


def syslog_timestamp(ts: datetime) -> str:
    """Format *ts* as ``Mon DD HH:MM:SS`` in local time."""
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return f"{_MONTHS[ts.month - 1]} {ts:%d %H:%M:%S}"


def validate_template(template: str):
    """Raise FormatError unless *template* only uses known named placeholders.

    The template must include {text}, otherwise every line would be shipped
    without the job output.
    """
    if _GO_TEMPLATE_ACTION.search(template):
        raise FormatError(
            f"Log template {template!r} uses Go template syntax, "
            f"use {{placeholder}} fields such as {DEFAULT_TEMPLATE!r}"
        )
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as e:
        raise FormatError(f"Malformed log template {template!r}: {e}") from e

    for _literal, field_name, format_spec, conversion in parsed:
        if field_name is None:
            continue
        if field_name not in PLACEHOLDERS:
            raise FormatError(
                f"Unknown placeholder {{{field_name}}} in log template, "
                f"expected one of: {', '.join(PLACEHOLDERS)}"
            )
        if format_spec and "{" in format_spec:
            raise FormatError(f"Nested placeholders are not supported: {{{field_name}:{format_spec}}}")
        if conversion not in (None, "r", "s", "a"):
            raise FormatError(f"Invalid conversion !{conversion} for {{{field_name}}}")

    if not any(field_name == "text" for _literal, field_name, _spec, _conv in parsed):
        raise FormatError(f"Log template {template!r} must contain the {{text}} placeholder")


def format_message(message: Message, hostname: str, template: str = DEFAULT_TEMPLATE) -> str:
    """Render *message* with *template* and append a single newline."""
    values = {
        "priority": syslog_priority(message.severity),
        "timestamp": syslog_timestamp(message.timestamp),
        "hostname": hostname,
        "job_name": message.job_name,
        "severity": message.severity,
        "text": message.text.removesuffix("\r"),
    }
    try:
        line = template.format(**values)
    except (KeyError, IndexError, ValueError, TypeError, AttributeError) as e:
        raise FormatError(f"Unable to render log template {template!r}: {e}") from e
    return line.translate(_LINE_BREAKS) + "\n"


class MessageFormatter:
    """Validated template bound to a hostname."""

    def __init__(self, template: str = DEFAULT_TEMPLATE, hostname: str = "localhost"):
        validate_template(template)
        self._template = template
        self._hostname = hostname
        # Format specs like {text:d} only fail at render time, catch them now.
        format_message(
            Message(timestamp=datetime.now(), job_name="rsyslog-cron", text="", severity=SEVERITY_INFO),
            hostname,
            template,
        )

    @property
    def template(self) -> str:
        return self._template

    @property
    def hostname(self) -> str:
        return self._hostname

    def format(self, message: Message) -> str:
        return format_message(message, self._hostname, self._template)
