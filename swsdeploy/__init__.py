# -*- coding: utf-8 -*-
"""
    swsdeploy
    ~~~~~~~~~
    Stanford Web Services deployment tool. Updates and manages the sites of
    a Drupal multisite stack through drush, git and rsync.

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

import sys

from swsdeploy.version import __version__

# Import here classes decorated with `@cli.command`. They will be registered
# and made available as swsdeploy commands

from swsdeploy.main import Sites, UpdateEnvironment, UpdateGroup
from swsdeploy.plugins import GitHub, Keys, SlackMessage, UnsetDomainRedirect

assert sys.version_info > (3,)
