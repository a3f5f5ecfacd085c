# -*- coding: utf-8 -*-
"""
    swsdeploy.updater
    ~~~~~~~~~~~~~~~~~
    Update every site of an environment with bounded parallelism.

    The site list is split into groups, one worker process is started per
    group and every worker appends a ``site:flag`` record per site to a
    shared :class:`swsdeploy.report.UpdateReport`. Once all workers have
    exited the report is collected into a single
    :class:`swsdeploy.report.RunResult`.

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
import os
import select
import signal
import subprocess
import time

import swsdeploy.log as log
from swsdeploy.operations import UpdateOptions, update_site
import swsdeploy.utils as utils

DEFAULT_PARALLELISM = 10
DEFAULT_ATTEMPTS = 3


def partition(sites, parallelism):
    """
    Deal `sites` round-robin into at most `parallelism` groups.

    Site ``i`` lands in group ``i % parallelism``; empty groups are dropped.

    >>> partition(['a', 'b', 'c', 'd', 'e'], 2)
    [['a', 'c', 'e'], ['b', 'd']]
    >>> partition([], 4)
    []
    """
    if parallelism < 1:
        raise ValueError("parallelism must be at least 1, got %r" % parallelism)

    groups = [[] for _ in range(parallelism)]
    for index, site in enumerate(sites):
        groups[index % parallelism].append(site)

    return [group for group in groups if group]


def _attempt_update(site, operations, options, logger):
    try:
        return update_site(site, operations, options)
    except Exception:
        # Anything short of a clean result counts as a failed attempt
        logger.exception("Unexpected error while updating %s", site)
        return False


@utils.log_context("update_group")
def update_group(
    group,
    report,
    operations,
    options=None,
    max_attempts=DEFAULT_ATTEMPTS,
    logger=None,
):
    """
    Update each site in `group` in order, recording every outcome.

    A failing site is recorded and the next site is processed regardless.

    :param group: list of site aliases
    :param report: :class:`swsdeploy.report.UpdateReport` to append to
    :param operations: :class:`swsdeploy.operations.RemoteSiteOperations`
    :param options: :class:`swsdeploy.operations.UpdateOptions`
    :param max_attempts: tries per site, first success wins
    """
    if options is None:
        options = UpdateOptions()

    for site in group:
        with utils.context_logger(site) as site_logger:
            site_logger.info("Updating %s", site)
            success = utils.retry(
                _attempt_update,
                site,
                operations,
                options,
                site_logger,
                max_attempts=max_attempts,
                logger=site_logger,
            )
            if success:
                site_logger.info("Updated %s", site)
            else:
                site_logger.warning(
                    "Failed to update %s after %d %s",
                    site,
                    max_attempts,
                    utils.pluralize("attempt", max_attempts),
                )
            report.append(site, bool(success))


class Worker(object):
    """
    A running worker process updating one group of sites.

    The process starts immediately and should be driven by a poll loop,
    typically :meth:`ParallelSiteUpdater.dispatch`.
    """

    def __init__(self, number, group, command):
        self.number = number
        self.group = group
        self.command = command
        # A session of its own so that a timeout can take down drush and
        # ssh children along with the worker
        self.proc = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
        self.fd = self.proc.stdout.fileno()
        self._output = bytearray()
        self.timed_out = False

        self.started = time.time()
        self.ended = None

    @property
    def returncode(self):
        return self.proc.returncode

    @property
    def output(self):
        """Everything the worker wrote to stdout and stderr so far."""
        return self._output.decode("UTF-8", errors="replace")

    def duration(self):
        """Return the current or final worker duration."""
        ended = time.time() if self.ended is None else self.ended
        return ended - self.started

    def read(self):
        """Read whatever output is available. Only call once the fd is ready."""
        self._output += os.read(self.fd, 1048576)

    def poll(self):
        """Non-blocking check for the exit status."""
        result = self.proc.poll()
        if result is not None and self.ended is None:
            self.ended = time.time()
        return result

    def wait(self):
        """Drain the remaining output of an exited process."""
        for output in self.proc.communicate():
            if output is not None:
                self._output += output
        if self.ended is None:
            self.ended = time.time()

    def kill(self):
        """Kill the worker and every process it started."""
        self.timed_out = True
        try:
            os.killpg(self.proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass


class ParallelSiteUpdater(object):
    """
    Fan a list of sites out over worker processes and gather the outcome.

    :param report: :class:`swsdeploy.report.UpdateReport` shared with workers
    :param worker_command: callable taking a group of sites and returning the
                           argv of the process that updates them
    :param parallelism: maximum number of concurrent workers
    :param timeout: overall seconds to wait for workers; ``None`` or ``0``
                    waits for as long as it takes
    """

    @utils.log_context("updater")
    def __init__(
        self,
        report,
        worker_command,
        parallelism=DEFAULT_PARALLELISM,
        timeout=None,
        mute=False,
        logger=None,
    ):
        if parallelism < 1:
            raise ValueError("parallelism must be at least 1, got %r" % parallelism)

        self.report = report
        self.worker_command = worker_command
        self.parallelism = parallelism
        self.timeout = timeout or None
        self.mute = mute
        self.logger = logger
        self.dispatched = []

    def partition(self, sites):
        return partition(sites, self.parallelism)

    def dispatch(self, groups):
        """
        Start one worker per non-empty group and block until all have exited.

        Workers still running when the timeout expires are killed.
        """
        groups = [list(group) for group in groups if group]
        self.dispatched = [site for group in groups for site in group]

        if not groups:
            self.logger.warning("No sites to update")
            return

        reporter = log.reporter("site update workers", mute=self.mute)
        reporter.expect(len(groups))
        reporter.start()

        epoll = select.epoll()
        running = {}

        def finish(worker):
            epoll.unregister(worker.fd)
            del running[worker.fd]
            worker.wait()

            if worker.timed_out:
                self.logger.warning(
                    "Worker %d exceeded %ss timeout and was killed while updating %s",
                    worker.number,
                    self.timeout,
                    ", ".join(worker.group),
                )
                reporter.add_failure()
            elif worker.returncode != 0:
                self.logger.warning(
                    "Worker %d exited with status %d: %s",
                    worker.number,
                    worker.returncode,
                    worker.output,
                )
                reporter.add_failure()
            else:
                self.logger.debug(
                    "Worker %d finished in %s: %s",
                    worker.number,
                    utils.human_duration(worker.duration()),
                    worker.output,
                )
                reporter.add_success()

        deadline = None
        if self.timeout:
            deadline = time.time() + self.timeout

        try:
            for number, group in enumerate(groups, 1):
                command = self.worker_command(group)
                self.logger.debug(
                    "Starting worker %d for %d %s: %s",
                    number,
                    len(group),
                    utils.pluralize("site", group),
                    " ".join(command),
                )
                worker = Worker(number, group, command)
                running[worker.fd] = worker
                epoll.register(worker.fd, select.EPOLLIN)

            while running:
                for fd, event in epoll.poll(0.1):
                    worker = running.get(fd)
                    if worker is not None:
                        worker.read()

                for worker in list(running.values()):
                    if worker.poll() is not None:
                        finish(worker)

                if deadline is not None and time.time() >= deadline:
                    for worker in list(running.values()):
                        worker.kill()
                        finish(worker)

        finally:
            for worker in list(running.values()):
                worker.kill()
                finish(worker)

            epoll.close()
            reporter.finish()

    def collect(self):
        """
        Read the report written by the workers and clear it.

        :returns: :class:`swsdeploy.report.RunResult`
        """
        result = self.report.result()
        self.report.clear()
        return result

    def run(self, sites):
        """
        Update `sites`: create the report, dispatch and collect.

        Sites handed to a worker that never reported them (for instance
        because the worker was killed) are counted as failed.

        :returns: :class:`swsdeploy.report.RunResult`
        """
        self.report.create()
        self.dispatch(self.partition(sites))
        result = self.collect()

        reported = set(result.succeeded) | set(result.failed)
        missing = [site for site in self.dispatched if site not in reported]
        if missing:
            self.logger.warning(
                "No result was reported for %s", ", ".join(missing)
            )
            result.failed.extend(missing)

        return result
