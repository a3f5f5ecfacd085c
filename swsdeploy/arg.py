# -*- coding: utf-8 -*-
"""
    swsdeploy.arg
    ~~~~~~~~~~~~~
    Helpers for building the argument parser. Most of the externally useful
    API for command line arg parsing is found in swsdeploy.cli

    .. seealso::
       * :func:`swsdeploy.cli.command`
       * :func:`swsdeploy.cli.argument`

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
import inspect
import logging
import os

import swsdeploy.cli

ATTR_SUBPARSER = "_app_subparser"
ATTR_ARGUMENTS = "_app_arguments"
ATTR_SUBCOMMAND = "_app_subcmd_name"


def is_dir(string):
    """represents a cli argument which accepts only a valid directory name"""
    if not os.path.isdir(string):
        message = "Argument '%s' is not a valid directory path."
        raise argparse.ArgumentTypeError(message % string)
    return os.path.normpath(string)


def positive_int(string):
    """represents a cli argument which accepts an integer of at least 1"""
    try:
        value = int(string)
    except ValueError:
        raise argparse.ArgumentTypeError("'%s' is not an integer" % string)
    if value < 1:
        raise argparse.ArgumentTypeError("'%s' must be at least 1" % string)
    return value


def comma_list(string):
    """represents a cli argument holding a comma separated list"""
    return [item.strip() for item in string.split(",") if item.strip()]


class SwsArgParser(argparse.ArgumentParser):
    """argparse subclass that understands the decorator argument specs."""

    def __init__(self, *args, **kwargs):
        if "conflict_handler" not in kwargs:
            kwargs["conflict_handler"] = "resolve"
        super().__init__(*args, **kwargs)

    def add_arguments(self, local_args):
        for argspec in reversed(local_args):
            flags = argspec.pop("_flags")
            self.add_argument(*flags, **argspec)
            argspec["_flags"] = flags


class SwsHelpFormatter(argparse.HelpFormatter):
    """Formatter that respects argparse.SUPPRESS for subparser actions."""

    def _format_action(self, action):
        if not action.help == argparse.SUPPRESS:
            return super()._format_action(action)
        return ""


def build_parser():
    """Build an argument parser for all ``cli.Application``'s."""
    parser = SwsArgParser(prog="swsdeploy", formatter_class=SwsHelpFormatter)

    global_parser = get_global_parser()

    desc = "Available swsdeploy commands are listed below. \
    For help with a particular command, run `swsdeploy <command> -h`"

    subparsers = parser.add_subparsers(
        title="swsdeploy commands",
        metavar="<command>",
        parser_class=SwsArgParser,
        description=desc,
    )

    cmds = swsdeploy.cli.all_commands()

    for cmd in sorted(cmds.values(), key=lambda x: x["name"]):
        build_subparser(cmd, subparsers, global_parser)

    return parser


def get_global_parser():
    """
    Add standard arguments to argparser.

    These arguments should be present on all subparsers.
    """
    parser = SwsArgParser(formatter_class=SwsHelpFormatter, add_help=False)

    title = "global arguments"
    desc = "Although these arguments can be passed to all swsdeploy \
        (sub-)commands,\nnot all commands are affected by every global argument."
    group = parser.add_argument_group(title, desc)

    default_loglevel = os.getenv("SWSDEPLOY_LOG_LEVEL", logging.INFO)

    group.add_argument(
        "-c",
        "--conf",
        dest="conf_file",
        type=argparse.FileType("r"),
        help="Path to configuration file",
    )
    group.add_argument(
        "-D",
        "--define",
        dest="defines",
        action="append",
        help="Set a configuration value",
        metavar="<name>:<value>",
    )
    group.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const=logging.DEBUG,
        default=default_loglevel,
        dest="loglevel",
        help="Verbose output",
    )
    group.add_argument(
        "-e",
        "--environment",
        default=None,
        help="environment whose swsdeploy.cfg should be loaded",
    )
    group.add_argument(
        "--no-local-config",
        action="store_true",
        help="Ignore swsdeploy.cfg files in the current directory",
    )
    group.add_argument(
        "--no-log-message",
        action="store_true",
        help="Do not send announcements to the release notifications channel",
    )

    return parser


def extract_help_from_object(obj):
    doc = inspect.getdoc(obj) or ""

    lines = doc.strip().splitlines()
    if len(lines) > 1:
        return dict(
            help=lines[0],
            description=lines[0],
            epilog="\n".join(lines[1::]).strip(),
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
    return dict(
        help=doc, description=doc, epilog=None, formatter_class=argparse.HelpFormatter
    )


def build_subparser(cmd, parser, global_parser):
    """Append subparsers to ``cli.Application``'s argparser using decorators."""

    cls = cmd["cls"]
    kwargs = extract_help_from_object(cls)
    kwargs.update(cmd["kwargs"])

    has_subparsers = getattr(cls, ATTR_SUBPARSER, False)
    kwargs["parents"] = [global_parser]
    sub = parser.add_parser(*cmd["args"], **kwargs)
    sub.set_defaults(which=cls, command=cmd["name"])

    if has_subparsers:
        kwargs["epilog"] = ""
        subsubparsers = sub.add_subparsers(
            title="%s sub-commands" % cmd["name"],
            metavar="<sub-command>",
            parser_class=SwsArgParser,
            dest="subcommand",
            description=kwargs["help"],
        )
        subsubparsers.required = True

        for method_name, method in inspect.getmembers(cls, inspect.isfunction):
            local_args = getattr(method, ATTR_ARGUMENTS, None)
            subcmd_name = getattr(method, ATTR_SUBCOMMAND, None)
            if subcmd_name is None:
                continue
            kwargs.update(extract_help_from_object(method))
            kwargs["parents"] = [global_parser]
            subsubparser = subsubparsers.add_parser(subcmd_name, **kwargs)
            subsubparser.set_defaults(subcommand=method)
            if local_args:
                subsubparser.add_arguments(local_args)
    else:
        method = getattr(cls, "main")
        local_args = getattr(method, ATTR_ARGUMENTS, [])
        sub.add_arguments(local_args)
