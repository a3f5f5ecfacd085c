# -*- coding: utf-8 -*-
"""
    swsdeploy.plugins
    ~~~~~~~~~~~~~~~~~
    swsdeploy plugin architecture

    .. function:: find_plugins(plugin_dirs)

        Get a list of all plugins found in in plugin_dirs

        :param list plugin_dirs: directories to search for plugins
        :return: list of all plugin commands found in plugin_dirs
    .. function:: load_plugins([plugin_dir])

        load swsdeploy plugin modules.

        :type plugin_dir: str or None
        :param str plugin_dir: an additional location to search

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
import importlib
import logging
import os
import sys

from swsdeploy.cli import Application
from swsdeploy.plugins.github import GitHub
from swsdeploy.plugins.keys import Keys
from swsdeploy.plugins.site import UnsetDomainRedirect
from swsdeploy.plugins.slack import SlackMessage

THIS_MODULE = sys.modules[__name__]
LOADED_PLUGINS = {}
BUILTIN_PLUGINS = {"github", "keys", "site", "slack"}
__all__ = ["GitHub", "Keys", "SlackMessage", "UnsetDomainRedirect"]


def find_plugins(plugin_dirs):
    """
    returns a list of all plugin commands found in plugin_dirs
    """
    plugins = []

    for d in plugin_dirs:
        if d is None or not os.path.exists(d):
            continue

        try:
            file_list = os.listdir(os.path.realpath(d))
        except OSError:
            continue

        for f in file_list:
            if not f.startswith("_") and f.endswith(".py"):
                name = f[:-3]
                if name not in BUILTIN_PLUGINS and name not in plugins:
                    plugins.append(name)

        # add plugin_dir to this module's search path
        if d not in __path__:
            __path__.append(d)

    return plugins


def load_plugins(plugin_dir=None):
    """
    load plugins from ./swsdeploy/plugins/*.py and ~/.swsdeploy/plugins/*.py
    and add them to the swsdeploy.plugins module namespace.
    """
    if LOADED_PLUGINS:
        # prevent loading plugins multiple times
        return

    plugin_dirs = [
        plugin_dir,
        os.path.join(os.getcwd(), "swsdeploy", "plugins"),
        os.path.join(os.path.expanduser("~"), ".swsdeploy", "plugins"),
    ]

    plugins = find_plugins(plugin_dirs)
    if len(plugins) < 1:
        return

    # Don't litter plugin directories with bytecode
    maybe_write_bytecode = sys.dont_write_bytecode
    sys.dont_write_bytecode = True

    for plugin in plugins:
        plugin_module = ".%s" % plugin
        try:
            mod = importlib.import_module(plugin_module, "swsdeploy.plugins")
            # find classes in mod which extend swsdeploy.cli.Application
            for objname in dir(mod):
                obj = getattr(mod, objname)
                if (
                    isinstance(obj, type)
                    and issubclass(obj, Application)
                    and obj is not Application
                ):
                    if objname in LOADED_PLUGINS or objname in __all__:
                        msg = "Duplicate plugin named %s, skipping."
                        logging.getLogger().warning(msg, objname)
                        continue
                    setattr(THIS_MODULE, objname, obj)
                    LOADED_PLUGINS[objname] = obj
                    __all__.append(objname)
        except Exception as e:
            msg = "Problem loading plugins from module: swsdeploy.plugins.%s (%s)"
            err_msg = type(e).__name__ + ":" + str(e)
            logging.getLogger().warning(msg, plugin, err_msg)

    sys.dont_write_bytecode = maybe_write_bytecode
