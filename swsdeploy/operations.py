# -*- coding: utf-8 -*-
"""
    swsdeploy.operations
    ~~~~~~~~~~~~~~~~~~~~
    What can be done to a single site, and the options that drive it.

    The update workers only ever talk to a :class:`RemoteSiteOperations`;
    :class:`DrushSiteOperations` is the production implementation which
    reaches each site through its drush alias.

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
import abc
import dataclasses

import swsdeploy.runcmd as runcmd
import swsdeploy.utils as utils


@dataclasses.dataclass(frozen=True)
class UpdateOptions:
    """Which steps of the site update sequence to run."""

    database_only: bool = False
    configs_only: bool = False
    rebuild_node_access: bool = False
    partial_config_import: bool = False

    FLAGS = {
        "database_only": "--database-only",
        "configs_only": "--configs-only",
        "rebuild_node_access": "--rebuild-node-access",
        "partial_config_import": "--partial-config-import",
    }

    def __post_init__(self):
        for field in dataclasses.fields(self):
            if not isinstance(getattr(self, field.name), bool):
                raise ValueError("%s must be a boolean" % field.name)
        if self.database_only and self.configs_only:
            raise ValueError(
                "database_only and configs_only cannot be used together"
            )

    @classmethod
    def from_arguments(cls, arguments):
        """Build options from parsed command line arguments."""
        return cls(
            **{
                name: bool(getattr(arguments, name, False))
                for name in cls.FLAGS
            }
        )

    def to_args(self) -> list:
        """Render the enabled options as command line flags."""
        return [flag for name, flag in self.FLAGS.items() if getattr(self, name)]


class RemoteSiteOperations(abc.ABC):
    """The steps that can be run against one site. Each returns success."""

    @abc.abstractmethod
    def apply_database_migrations(self, site) -> bool:
        pass

    @abc.abstractmethod
    def import_configuration(self, site, partial=False) -> bool:
        pass

    @abc.abstractmethod
    def rebuild_cache(self, site) -> bool:
        pass

    @abc.abstractmethod
    def rebuild_node_access(self, site) -> bool:
        pass


class DrushSiteOperations(RemoteSiteOperations):
    """Run the update steps with drush through the site's alias."""

    def __init__(self, drush="drush"):
        self.drush = drush

    @utils.log_context("drush")
    def _drush(self, site, command, *args, logger=None):
        try:
            output = runcmd.drush(site, command, *args, binary=self.drush)
        except runcmd.FailedCommand as e:
            logger.warning(
                "drush %s on @%s failed [%d]: %s",
                command,
                site,
                e.exitcode,
                e.stderr.strip(),
            )
            return False
        except OSError as e:
            logger.warning("Could not run drush %s on @%s: %s", command, site, e)
            return False

        logger.debug("drush %s on @%s: %s", command, site, output.strip())
        return True

    def apply_database_migrations(self, site):
        return self._drush(site, "updatedb", "--yes")

    def import_configuration(self, site, partial=False):
        args = ["--yes"]
        if partial:
            args.append("--partial")
        return self._drush(site, "config:import", *args)

    def rebuild_cache(self, site):
        return self._drush(site, "cache:rebuild")

    def rebuild_node_access(self, site):
        return self._drush(site, "php:eval", "node_access_rebuild();")

    def status(self, site):
        """Bootstrap the site to check that its host can be reached."""
        return self._drush(site, "status")


def update_site(site, operations, options):
    """
    Run the update sequence for one site.

    Database updates run before the configuration import; node access is
    rebuilt after it when requested, and caches are always rebuilt last.
    The sequence stops at the first failing step.

    :returns: True when every step that ran succeeded
    """
    steps = []
    if not options.configs_only:
        steps.append((operations.apply_database_migrations, {}))
    if not options.database_only:
        steps.append(
            (
                operations.import_configuration,
                {"partial": options.partial_config_import},
            )
        )
    if options.rebuild_node_access:
        steps.append((operations.rebuild_node_access, {}))
    steps.append((operations.rebuild_cache, {}))

    for step, kwargs in steps:
        if not step(site, **kwargs):
            return False
    return True
