# -*- coding: utf-8 -*-
"""
    swsdeploy.log
    ~~~~~~~~~~~~~
    Helpers for routing and formatting log data.

    Copyright © 2020-2026 Stanford Web Services and Contributors.

    This file is part of swsdeploy.

    swsdeploy is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, version 3.

    This program is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""
import json
import logging
import math
import socket
import sys
import time

import requests

from swsdeploy.notify import Slack
import swsdeploy.utils as utils

# Format string for log messages. Interpolates LogRecord attributes.
# See <https://docs.python.org/3/library/logging.html#logrecord-attributes>
# for attribute names you can include here.
CONSOLE_LOG_FORMAT = "%(asctime)s %(levelname)-8s - %(message)s"
TIMESTAMP_FORMAT = "%H:%M:%S"

ANSI_RESET = "\x1b[0m"


class AnsiColorFormatter(logging.Formatter):
    """Colorize output according to logging level."""

    colors = {
        "CRITICAL": "41;37",  # white on red
        "ERROR": "31",  # red
        "WARNING": "33",  # yellow
        "INFO": "32",  # green
        "DEBUG": "36",  # cyan
    }

    def __init__(self, fmt=None, datefmt=None, colors=None):
        """
        :param fmt: Message format string
        :param datefmt: Time format string
        :param colors: Dict of {'levelname': ANSI SGR parameters}

        .. seealso:: https://en.wikipedia.org/wiki/ANSI_escape_code
        """
        super().__init__(fmt, datefmt)
        self.colors = dict(self.colors)
        if colors:
            self.colors.update(colors)

    def format(self, record):
        msg = super().format(record)
        color = self.colors.get(record.levelname, "0")
        return "\x1b[%sm%s%s" % (color, msg, ANSI_RESET)


class SlackHandler(logging.Handler):
    """
    Log handler for the release notifications Slack channel.

    Relays announcement log events to a Slack incoming webhook.
    """

    def __init__(self, slack):
        """
        :param slack: client used to deliver messages
        :type slack: swsdeploy.notify.Slack
        """
        super().__init__()
        self.slack = slack
        self.level = logging.INFO

    def emit(self, record):
        message = "%s@%s %s" % (
            utils.get_real_username(),
            socket.gethostname(),
            record.getMessage(),
        )
        try:
            self.slack.post(message)
        except requests.RequestException:
            self.handleError(record)


class JSONFormatter(logging.Formatter):
    """
    Serialize logging output as JSON.

    Used when the output is collected by a CI system rather than read by a
    person.
    """

    FIELDS = (
        "name",
        "levelname",
        "created",
        "filename",
        "lineno",
        "funcName",
        "process",
    )

    def format(self, record):
        fields = {k: getattr(record, k, None) for k in self.FIELDS}
        fields["message"] = record.getMessage()

        if record.exc_info:
            fields["exc_text"] = self.formatException(record.exc_info)

        # Extra attributes such as `site` are carried along
        for key in ("site", "group"):
            if hasattr(record, key):
                fields[key] = getattr(record, key)

        return json.dumps(fields, default=str)


def reporter(message, mute=False):
    """
    Instantiate progress reporter

    :message: - string that will be displayed to user
    :mute: - boolean that silences the reporter entirely
    """
    if mute:
        return MuteReporter(message)

    return ProgressReporter(message)


class ProgressReporter(object):
    """
    Track and display progress of a process.

    Report on the status of a multi-step process by displaying the completion
    percentage and success, failure and remaining task counts on a single
    output line.
    """

    def __init__(self, name, expect=0, fd=sys.stderr):
        """
        :param name: Name of command being monitored
        :param expect: Number of results to expect
        :param fd: File handle to write status messages to
        """
        self._name = name
        self._expect = expect
        self._done = 0
        self._ok = 0
        self._failed = 0
        self._fd = fd

    @property
    def ok(self):
        return self._ok

    @property
    def failed(self):
        return self._failed

    @property
    def remaining(self):
        return self._expect - self._done

    @property
    def done(self):
        return self._done

    @property
    def percent_complete(self):
        return math.floor(100.0 * (float(self._done) / max(self._expect, 1)))

    def expect(self, count):
        """Set expected result count."""
        self._expect = count

    def start(self):
        """Start tracking progress."""
        self._progress()

    def finish(self):
        """Finish tracking progress."""
        self._progress()
        self._fd.write("\n")

    def add_success(self):
        """Record a successful task completion."""
        self._done += 1
        self._ok += 1
        self._progress()

    def add_failure(self):
        """Record a failed task completion."""
        self._done += 1
        self._failed += 1
        self._progress()

    def _progress(self):
        if self._fd.isatty():
            fmt = "%-80s\r"
        else:
            fmt = "%-80s\n"
        self._fd.write(fmt % self._output())

    def _output(self):
        return "%s: %3.0f%% (ok: %d; fail: %d; left: %d)" % (
            self._name,
            self.percent_complete,
            self.ok,
            self.failed,
            self.remaining,
        )


class MuteReporter(ProgressReporter):
    """A report that declines to report anything."""

    def __init__(self, name="", expect=0, fd=sys.stderr):
        super().__init__(name, expect=expect, fd=fd)

    def _progress(self):
        pass

    def finish(self):
        pass


class Timer(object):
    """
    Context manager to track and record the time taken to execute a block.

    Elapsed time will be recorded to a logger.

    >>> with Timer('example'):
    ...     time.sleep(0.1)

    Sub-interval times can also be recorded using the :meth:`mark` method.

    >>> with Timer('update sites') as t:
    ...     time.sleep(0.1)
    ...     x = t.mark('connectivity check')
    ...     time.sleep(0.1)
    ...     y = t.mark('workers')
    """

    @utils.log_context("timer")
    def __init__(self, label, logger=None):
        """
        :param label: Label for block (e.g. 'update-environment')
        :type label: str
        """
        self.label = label
        self.logger = logger
        self.mark_start = None
        self.start = None

    def mark(self, label):
        """
        Log the interval elapsed since the last mark call.

        :param label: Label for block
        :type label: str
        """
        now = time.time()
        elapsed = now - self.mark_start
        self._record_elapsed(label, elapsed)
        self.mark_start = now
        return elapsed

    def __enter__(self):
        self.start = time.time()
        self.mark_start = self.start
        self.logger.info("Started %s", self.label)
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._record_elapsed(self.label, time.time() - self.start)

    def _record_elapsed(self, label, elapsed):
        self.logger.info(
            "Finished %s (duration: %s)", label, utils.human_duration(elapsed)
        )


def setup_loggers(cfg, console_level=logging.INFO, handlers=None):
    """
    Setup the logging system.

    * Configure the root logger to use :class:`AnsiColorFormatter` (or
      :class:`JSONFormatter` when ``log_json`` is set)
    * Optionally add a :class:`SlackHandler` for the `swsdeploy.announce`
      log channel to send messages to the release notifications channel

    :param cfg: Dict of global configuration values
    :param console_level: Logging level for the local console appender
    :param handlers: Additional handlers
    """
    # Set logger levels
    logging.root.setLevel(logging.DEBUG)
    logging.root.handlers[0].setLevel(console_level)

    if cfg["log_json"]:
        logging.root.handlers[0].setFormatter(JSONFormatter())
    elif utils.should_colorize_output():
        logging.root.handlers[0].setFormatter(
            AnsiColorFormatter("%(asctime)s %(message)s", TIMESTAMP_FORMAT)
        )

    if cfg.get("slack_webhook_url"):
        # Send 'swsdeploy.announce' messages to the Slack webhook
        announce_logger = logging.getLogger("swsdeploy.announce")
        announce_logger.addHandler(
            SlackHandler(
                Slack(
                    cfg["slack_webhook_url"],
                    token=cfg.get("slack_token"),
                    timeout=cfg.get("slack_timeout", 3.0),
                )
            )
        )

    if handlers is not None:
        for handler in handlers:
            logging.root.addHandler(handler)
