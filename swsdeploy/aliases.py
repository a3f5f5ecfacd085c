# -*- coding: utf-8 -*-
"""
    swsdeploy.aliases
    ~~~~~~~~~~~~~~~~~
    Drush site aliases, the inventory of sites and the hosts serving them.

    An alias is named ``<site>.<environment>`` and records at least the
    ``host`` (web head) and ``uri`` of the site in that environment.

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
import collections
import glob
import json
import os

import swsdeploy.runcmd as runcmd
import swsdeploy.utils as utils

ALIAS_FILE_SUFFIX = ".site.yml"


class SiteAliases(object):
    """
    Lazily loaded, cached view of the available drush aliases.

    Aliases are read from ``<site>.site.yml`` files in `alias_dir` when one
    is given, otherwise from ``drush site:alias --format=json``.
    """

    def __init__(self, drush="drush", alias_dir=None):
        self.drush = drush
        self.alias_dir = alias_dir
        self._aliases = None

    @property
    def aliases(self):
        """Mapping of alias name (without ``@``) to its record."""
        if self._aliases is None:
            if self.alias_dir:
                self._aliases = self._load_alias_files(self.alias_dir)
            else:
                self._aliases = self._load_from_drush()
        return self._aliases

    @utils.log_context("aliases")
    def _load_from_drush(self, logger=None):
        output = runcmd.drush(
            None, "site:alias", "--format=json", binary=self.drush
        )
        data = json.loads(output) if output.strip() else {}
        logger.debug("Loaded %d aliases from drush", len(data))
        return {name.lstrip("@"): info or {} for name, info in data.items()}

    @utils.log_context("aliases")
    def _load_alias_files(self, alias_dir, logger=None):
        aliases = {}
        pattern = os.path.join(alias_dir, "*" + ALIAS_FILE_SUFFIX)
        for path in sorted(glob.glob(pattern)):
            site = os.path.basename(path)[: -len(ALIAS_FILE_SUFFIX)]
            with open(path) as f:
                environments = utils.ordered_load(f)
            for env, info in environments.items():
                aliases["%s.%s" % (site, env)] = info or {}
        logger.debug("Loaded %d aliases from %s", len(aliases), alias_dir)
        return aliases

    def for_environment(self, environment):
        """
        Sorted alias names belonging to `environment`.

        An alias belongs to an environment when its last dotted component is
        the environment name, e.g. ``mysite.01dev`` for ``01dev``.
        """
        return sorted(
            name
            for name in self.aliases
            if name.rpartition(".")[2] == environment
        )

    def hosts(self, environment):
        """
        Map each web host of `environment` to the first alias served by it.
        """
        hosts = collections.OrderedDict()
        for name in self.for_environment(environment):
            host = self.aliases[name].get("host")
            if host and host not in hosts:
                hosts[host] = name
        return hosts

    def get(self, site):
        """
        :raises KeyError: when there is no such alias
        """
        return self.aliases[site.lstrip("@")]
