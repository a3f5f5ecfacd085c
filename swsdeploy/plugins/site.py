# -*- coding: utf-8 -*-
"""
    swsdeploy.plugins.site
    ~~~~~~~~~~~~~~~~~~~~~~
    Maintenance of a single site.

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
import swsdeploy.cli as cli
import swsdeploy.interaction as interaction
import swsdeploy.runcmd as runcmd
import swsdeploy.utils as utils


@cli.command("unset-domain-301", help="Remove the domain redirect of a site")
class UnsetDomainRedirect(cli.Application):
    """
    Remove the domain redirect of a site.

    Empties the site URL table, then rebuilds and invalidates caches so the
    site answers on its own domain again.
    """

    @cli.argument("site", help="Site name, without the environment")
    @cli.argument(
        "--env", default=None, help="Environment of the site (default: default_env)"
    )
    @cli.argument(
        "--nobots", action="store_true", help="Also enable nobots without asking"
    )
    def main(self, *extra_args):
        logger = self.get_logger()
        alias = "%s.%s" % (self.arguments.site, self.arguments.env or self.config["default_env"])

        logger.info(
            "Be sure you have the most recent drush aliases for @%s", alias
        )

        enable_nobots = self.arguments.nobots
        if not enable_nobots and interaction.have_terminal():
            enable_nobots = self.prompt_user_for_confirmation(
                "Would you also like to enable nobots?"
            )

        commands = [
            ("sqlq", "truncate table config_pages__su_site_url"),
            ("cr",),
            ("p:invalidate", "everything"),
        ]
        if enable_nobots:
            commands.append(("sset", "nobots", "1"))

        for command in commands:
            logger.info("drush @%s %s", alias, " ".join(command))
            with utils.suppress_backtrace():
                runcmd.drush(alias, *command, binary=self.config["drush"])

        return 0
