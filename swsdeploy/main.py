# -*- coding: utf-8 -*-
"""
    swsdeploy.main
    ~~~~~~~~~~~~~~
    Command wrappers for updating the sites of an environment

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
import argparse
import functools
import os

from prettytable import PrettyTable, SINGLE_BORDER

import swsdeploy.arg as arg
import swsdeploy.cli as cli
import swsdeploy.notify as notify
import swsdeploy.utils as utils
from swsdeploy.aliases import SiteAliases
from swsdeploy.operations import DrushSiteOperations, UpdateOptions
from swsdeploy.report import UpdateReport
from swsdeploy.updater import ParallelSiteUpdater, update_group

PARALLELISM_ENV_VAR = "SWSDEPLOY_PARALLELISM"


def update_option_arguments(func):
    """Declare the flags shared by update-environment and its workers."""
    for args, kwargs in reversed(
        [
            (
                ("--rebuild-node-access",),
                dict(
                    action="store_true",
                    help="Run node_access_rebuild() after the configuration import",
                ),
            ),
            (
                ("--database-only",),
                dict(
                    action="store_true",
                    help="Only apply database updates, skip the configuration import",
                ),
            ),
            (
                ("--configs-only",),
                dict(
                    action="store_true",
                    help="Only import configuration, skip database updates",
                ),
            ),
            (
                ("--partial-config-import",),
                dict(
                    action="store_true",
                    help="Import configuration with --partial",
                ),
            ),
            (
                ("--attempts",),
                dict(
                    type=arg.positive_int,
                    default=None,
                    help="Times to try each site before giving up "
                    "(default: update_attempts config)",
                ),
            ),
        ]
    ):
        func = cli.argument(*args, **kwargs)(func)
    return func


class SiteCommand(cli.Application):
    """Base class for commands working with the sites of an environment."""

    _aliases = None

    def get_aliases(self):
        if self._aliases is None:
            self._aliases = SiteAliases(
                drush=self.config["drush"],
                alias_dir=self.config["drush_alias_dir"],
            )
        return self._aliases

    def get_options(self):
        with utils.suppress_backtrace():
            return UpdateOptions.from_arguments(self.arguments)

    def get_attempts(self):
        if self.arguments.attempts is not None:
            return self.arguments.attempts
        return self.config["update_attempts"]


@cli.command(
    "update-environment",
    help="Update every site of an environment in parallel",
)
class UpdateEnvironment(SiteCommand):
    """
    Update every site of an environment in parallel.

    Each site gets its database updates applied, its configuration imported
    and its caches rebuilt through its drush alias. Sites are spread over
    worker processes and every failure is reported at the end of the run.
    """

    @cli.argument(
        "--sites",
        type=arg.comma_list,
        default=None,
        help="Comma separated list of aliases to restrict the update to",
    )
    @cli.argument(
        "--parallelism",
        type=arg.positive_int,
        default=None,
        help="Number of worker processes "
        "(default: $%s or the update_parallelism config)" % PARALLELISM_ENV_VAR,
    )
    @cli.argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the workers, 0 to wait forever "
        "(default: update_timeout config)",
    )
    @cli.argument(
        "--no-progress",
        action="store_true",
        dest="mute",
        help="Do not show progress indicator.",
    )
    @update_option_arguments
    @cli.argument("env_name", metavar="ENV", help="Environment to update, e.g. 01live")
    def main(self, *extra_args):
        logger = self.get_logger()
        environment = self.arguments.env_name
        options = self.get_options()

        sites = self._get_sites(environment)
        if not sites:
            utils.abort("No sites found for environment %s" % environment)

        report = UpdateReport(
            os.path.join(
                self.config["report_dir"],
                "swsdeploy-%s-%d.report" % (environment, os.getpid()),
            )
        )
        updater = ParallelSiteUpdater(
            report,
            functools.partial(
                self.get_worker_command, environment, report.path, options
            ),
            parallelism=self.get_parallelism(),
            timeout=self.get_timeout(),
            mute=self.arguments.mute,
        )

        logger.info(
            "Updating %d %s on %s with %d %s",
            len(sites),
            utils.pluralize("site", sites),
            environment,
            updater.parallelism,
            utils.pluralize("worker", updater.parallelism),
        )

        with self.Timer("update-environment %s" % environment) as timer:
            self._check_connectivity(environment)
            timer.mark("connectivity check")

            with self.lock_and_announce(
                self.config["lock_file"],
                "on %s" % environment,
                reason="updating %s" % environment,
            ):
                result = updater.run(sites)
                timer.mark("site updates")
                self.announce(notify.format_run_summary(environment, result))

        result.raise_for_failures()
        return 0

    def _get_sites(self, environment):
        sites = self.get_aliases().for_environment(environment)
        if self.arguments.sites is None:
            return sites

        wanted = [site.lstrip("@") for site in self.arguments.sites]
        unknown = sorted(set(wanted) - set(sites))
        if unknown:
            self.get_logger().warning(
                "Skipping unknown %s for %s: %s",
                utils.pluralize("alias", unknown),
                environment,
                ", ".join(unknown),
            )
        return [site for site in sites if site in wanted]

    @utils.log_context("connectivity")
    def _check_connectivity(self, environment, logger=None):
        """
        Bootstrap one site per web host so that an unreachable host aborts
        the run before any site is touched.
        """
        operations = DrushSiteOperations(self.config["drush"])
        for host, site in self.get_aliases().hosts(environment).items():
            logger.info("Checking connection to web host %s", host)
            if not operations.status(site):
                with utils.suppress_backtrace():
                    raise RuntimeError(
                        "Unable to connect to %s through @%s. Add the host "
                        "to your known hosts and try again." % (host, site)
                    )

    def get_parallelism(self):
        """
        Worker count: --parallelism, then $SWSDEPLOY_PARALLELISM, then the
        update_parallelism config.
        """
        if self.arguments.parallelism is not None:
            return self.arguments.parallelism

        value = os.environ.get(PARALLELISM_ENV_VAR)
        if value:
            try:
                return arg.positive_int(value)
            except argparse.ArgumentTypeError as e:
                utils.abort("Invalid %s: %s" % (PARALLELISM_ENV_VAR, e))

        return self.config["update_parallelism"]

    def get_timeout(self):
        if self.arguments.timeout is not None:
            return self.arguments.timeout
        return self.config["update_timeout"]

    def get_worker_command(self, environment, report_path, options, group):
        """Command line of the worker process updating `group`."""
        command = [
            self.get_script_path(),
            "update-group",
            "--report",
            report_path,
            "--attempts",
            str(self.get_attempts()),
        ]
        command += options.to_args()
        command += self.format_passthrough_args()

        if self.arguments.conf_file is not None:
            command += ["-c", self.arguments.conf_file.name]
        if self.arguments.environment is not None:
            command += ["-e", self.arguments.environment]
        if self.arguments.no_local_config:
            command.append("--no-local-config")
        if self.verbose:
            command.append("-v")

        return command + ["--", environment] + list(group)


@cli.command("update-group", help=argparse.SUPPRESS)
class UpdateGroup(SiteCommand):
    """Update a group of sites, appending each outcome to a report file."""

    @cli.argument("env_name", metavar="ENV", help="Environment being updated")
    @cli.argument("sites", nargs="+", metavar="SITE", help="Site aliases to update")
    @cli.argument("--report", required=True, help="Report file to append to")
    @update_option_arguments
    def main(self, *extra_args):
        update_group(
            self.arguments.sites,
            UpdateReport(self.arguments.report),
            DrushSiteOperations(self.config["drush"]),
            self.get_options(),
            max_attempts=self.get_attempts(),
        )
        return 0


@cli.command("sites", help="List the site aliases of an environment")
class Sites(SiteCommand):
    """List the site aliases of an environment with their host and uri."""

    @cli.argument("env_name", metavar="ENV", help="Environment to list, e.g. 01dev")
    def main(self, *extra_args):
        aliases = self.get_aliases()

        table = PrettyTable()
        table.set_style(SINGLE_BORDER)
        table.field_names = ["alias", "host", "uri"]
        for site in aliases.for_environment(self.arguments.env_name):
            info = aliases.get(site)
            table.add_row([site, info.get("host", ""), info.get("uri", "")])
        table.align = "l"

        print(table)
        return 0
