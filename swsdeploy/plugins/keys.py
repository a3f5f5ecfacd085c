# -*- coding: utf-8 -*-
"""
    swsdeploy.plugins.keys
    ~~~~~~~~~~~~~~~~~~~~~~
    Fetch the encryption keys and secrets from the hosting servers.

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

import swsdeploy.cli as cli
import swsdeploy.config as config
import swsdeploy.runcmd as runcmd
import swsdeploy.utils as utils


@cli.command("keys", help="Get encryption keys from the hosting servers")
class Keys(cli.Application):
    """
    Get encryption keys from the hosting servers.

    Every path of the keys_rsync_files config is copied from the
    keys_rsync_ssh host into the keys/ directory of repo_root.
    """

    def main(self, *extra_args):
        ssh = self.config["keys_rsync_ssh"]
        files = config.multi_value(self.config["keys_rsync_files"])
        if not ssh or not files:
            utils.abort("keys_rsync_ssh and keys_rsync_files must be configured")

        keys_dir = os.path.join(self.config["repo_root"], "keys")
        utils.mkdir_p(keys_dir)

        for from_path in files:
            source = "%s:%s" % (ssh, from_path)
            self.get_logger().info("Copying %s to %s", source, keys_dir)
            with utils.suppress_backtrace():
                output = runcmd.rsync(source, keys_dir)
            self.get_logger().debug(output)

        return 0
