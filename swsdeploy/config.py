# -*- coding: utf-8 -*-
"""
    swsdeploy.config
    ~~~~~~~~~~~~~~~~
    Configuration management

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
import socket
from configparser import ConfigParser

import swsdeploy.utils as utils


DEFAULT_CONFIG = {
    # Root of the multisite stack checkout (holds vendor/, docroot/, keys/)
    "repo_root": (str, os.getcwd()),
    "drush": (str, "drush"),
    # Directory holding drush alias files (<site>.site.yml). When unset the
    # aliases are listed with `drush site:alias`.
    "drush_alias_dir": (str, None),
    "default_env": (str, "01dev"),
    # Number of worker processes used by update-environment. The
    # SWSDEPLOY_PARALLELISM environment variable takes precedence.
    "update_parallelism": (int, 10),
    # Overall limit in seconds for an update-environment run, 0 to wait forever
    "update_timeout": (float, 3600.0),
    "update_attempts": (int, 3),
    "report_dir": (str, "/tmp"),
    "lock_file": (str, "/tmp/swsdeploy-update-environment.lock"),
    "log_json": (bool, False),
    "slack_webhook_url": (str, None),
    "slack_token": (str, None),
    "slack_timeout": (float, 3.0),
    "keys_rsync_ssh": (str, None),
    # Comma separated list of remote paths
    "keys_rsync_files": (str, ""),
    "git_user_name": (str, "CircleCI"),
    "git_user_email": (str, "sws-developers@lists.stanford.edu"),
}


def load(
    cfg_file=None,
    environment=None,
    overrides=None,
    use_global_config=True,
    use_local_config=True,
):
    """
    Load configuration.

    A configuration file consists of sections, led by a ``[section]`` header
    and followed by ``name: value`` entries. Lines beginning with ``'#'`` are
    ignored and may be used to provide comments.

    The configuration object is populated with values from the ``global``
    section and additional sections based on the fully qualified domain name
    of the local host. For example, on the host ``web-12.prod.hosting.acquia.com``
    the final value for a given setting would be the first value found in
    sections: ``web-12.prod.hosting.acquia.com``, ``prod.hosting.acquia.com``,
    ``hosting.acquia.com``, ``acquia.com``, ``com`` or ``global``.

    Configuration values are loaded from a file specified by the ``-c`` or
    ``--conf`` command-line options or from the default locations with the
    following hierarchy, sorted by override priority:

    #. ``$(pwd)/swsdeploy/environments/<environment>/swsdeploy.cfg`` or
       ``$(pwd)/swsdeploy/swsdeploy.cfg`` (if no environment was specified)
    #. ``/etc/swsdeploy.cfg`` (if use_global_config is true)

    :param cfg_file: Alternate configuration file
    :param environment: the string path under which swsdeploy.cfg is found
    :param overrides: Dict of configuration values
    :param use_global_config: A boolean indicating if /etc/swsdeploy.cfg
                              should be read
    :returns: dict of configuration values
    """
    local_cfg = os.path.join(os.getcwd(), "swsdeploy")

    parser = ConfigParser()
    if cfg_file:
        try:
            cfg_file = open(cfg_file)
        except TypeError:
            # Assume that cfg_file is already an open file
            pass

        parser.read_file(cfg_file)
    else:
        if (
            use_local_config
            and environment
            and not os.path.exists(os.path.join(local_cfg, "environments", environment))
        ):
            raise RuntimeError("Environment {} does not exist!".format(environment))

        files = []
        if use_global_config:
            files.append("/etc/swsdeploy.cfg")
        if use_local_config:
            files.extend(
                [
                    os.path.join(local_cfg, "swsdeploy.cfg"),
                    utils.get_env_specific_filename(
                        os.path.join(local_cfg, "swsdeploy.cfg"), environment
                    ),
                ]
            )

        parser.read(files)

    fqdn = socket.getfqdn().rstrip(".").split(".")
    sections = ["global"]
    sections += [".".join(fqdn[x:]) for x in range(0, len(fqdn))][::-1]

    config = {key: value for key, (_, value) in DEFAULT_CONFIG.items()}

    for section in sections:
        if parser.has_section(section):
            # Do not interpolate items in the section.
            for key, value in parser.items(section, True):
                config[key] = coerce_value(key, value)

    config = override_config(config, overrides)

    config["environment"] = environment
    if cfg_file:
        cfg_file.close()
    return config


def override_config(config, overrides=None):
    """Override values in a config with type-coerced values."""
    if overrides:
        for key, value in overrides.items():
            config[key] = coerce_value(key, value)

    return config


def coerce_value(key, value):
    """Coerce the given value based on the default config type."""

    if key in DEFAULT_CONFIG:
        default_type, _ = DEFAULT_CONFIG[key]

        if isinstance(value, default_type):
            return value

        if default_type == bool:
            lower = value.lower()

            # Accept the same bool values accepted by ConfigParser
            if lower in ["1", "yes", "true", "on"]:
                return True
            if lower in ["0", "no", "false", "off"]:
                return False
            msg = "invalid boolean value '{}'".format(value)
            raise ValueError(msg)

        else:
            return default_type(value)

    return value


def multi_value(str_value):
    """
    Given a string that's got commas, turn it into a list

    :param str_value: Random thing the user typed in config
    """
    if not str_value:
        return []
    return [x.strip() for x in str_value.split(",") if x.strip()]
