# -*- coding: utf-8 -*-
"""
    swsdeploy.report
    ~~~~~~~~~~~~~~~~
    The per-site outcome report shared by update workers.

    Every worker appends one ``site:flag`` line per site it processed to the
    same file. The file is created empty at the start of a run, read once
    after all workers have exited and then removed.

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
import dataclasses
import os
from typing import List

import swsdeploy.utils as utils

SUCCESS = "1"
FAILURE = "0"


class SiteUpdateError(RuntimeError):
    """One or more sites failed to update."""

    def __init__(self, failed):
        self.failed = sorted(failed)
        super().__init__(
            "Some sites failed to update: %s\n\n"
            "Manually run `drush deploy` at these aliases to resolve them."
            % ", ".join(self.failed)
        )


@dataclasses.dataclass
class RunResult:
    succeeded: List[str] = dataclasses.field(default_factory=list)
    failed: List[str] = dataclasses.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def raise_for_failures(self):
        """
        :raises SiteUpdateError: naming every failed site, if there are any
        """
        if self.failed:
            with utils.suppress_backtrace():
                raise SiteUpdateError(self.failed)


class UpdateReport:
    """File backed, append-only log of ``(site, success)`` records."""

    def __init__(self, path):
        self.path = path

    def create(self):
        """Start a run with an empty report, discarding stale records."""
        with open(self.path, "w"):
            pass

    def append(self, site: str, success: bool):
        """
        Append a single record.

        The whole line is written with one write while holding an exclusive
        lock, so records from concurrent workers never interleave.
        """
        line = "%s:%s\n" % (site, SUCCESS if success else FAILURE)
        with utils.open_with_lock(self.path, "a") as f:
            f.write(line)
            f.flush()

    def read(self) -> list:
        """
        :returns: list of (site, success) tuples in the order they were written
        """
        if not os.path.exists(self.path):
            return []

        records = []
        with utils.open_with_lock(self.path, "r") as f:
            for line in f:
                line = line.rstrip("\n")
                if not line:
                    continue
                site, _, flag = line.rpartition(":")
                records.append((site, flag == SUCCESS))
        return records

    def clear(self):
        """Remove the backing file so that a new run starts from nothing."""
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass

    def result(self) -> RunResult:
        """Split the current records into a :class:`RunResult`."""
        result = RunResult()
        for site, success in self.read():
            if success:
                result.succeeded.append(site)
            else:
                result.failed.append(site)
        return result
