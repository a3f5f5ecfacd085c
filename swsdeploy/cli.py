# -*- coding: utf-8 -*-
"""
    swsdeploy.cli
    ~~~~~~~~~~~~~
    Classes and helpers for creating command line interfaces

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
from contextlib import contextmanager
import locale
import logging
import operator
import os
import sys
import time
from functools import reduce

import swsdeploy.version as version
import swsdeploy.arg as arg
import swsdeploy.config as config
import swsdeploy.interaction as interaction
import swsdeploy.lock as lock
import swsdeploy.log as log
import swsdeploy.utils as utils


class Application(object):
    """Base class for creating command line applications."""

    program_name = None
    _logger = None
    _announce_logger = None
    _io = None
    _have_announced = False
    _argparser = None
    arguments = None
    extra_arguments = None
    config = None
    # Configuration options that were specified using -D on the command line.
    # Populated by _load_config().
    cli_defines = {}

    def __init__(self, exe_name):
        if self.program_name is None:
            self.program_name = os.path.basename(exe_name)
        self.exe_name = exe_name
        self.start = time.time()

        try:
            locale.setlocale(locale.LC_ALL, "")
        except locale.Error:
            pass

    def get_logger(self):
        """Lazy getter for a logger instance."""
        if self._logger is None:
            self._logger = logging.getLogger(self.program_name)
        return self._logger

    @property
    def verbose(self):
        return self.arguments.loglevel < logging.INFO

    def get_duration(self):
        """Get the elapsed duration in seconds."""
        return time.time() - self.start

    def get_script_path(self):
        """Returns the path to the swsdeploy script."""
        return os.path.join(os.path.dirname(os.path.abspath(sys.argv[0])), "swsdeploy")

    def announce(self, *args):
        """
        Announce a message to broadcast listeners.

        Emits a logging event to the 'swsdeploy.announce' logger which is
        relayed to the release notifications Slack channel when a webhook is
        configured.

        Announcements can be disabled by using '--no-log-message' in the
        command invocation. In this case the log event will still be emitted
        to the normal logger as though `self.get_logger().info()` was used
        instead of `self.announce()`.
        """
        if self.arguments.no_log_message:
            self.get_logger().info(*args)
        else:
            if self._announce_logger is None:
                self._announce_logger = logging.getLogger("swsdeploy.announce")
            self._announce_logger.info(*args)
            self._have_announced = True

    # Interaction stuff
    def get_io(self):
        if self._io is None:
            self._io = interaction.TerminalIO()
        return self._io

    def output_line(self, line: str):
        return self.get_io().output_line(line)

    def prompt_user_for_confirmation(self, prompt_message, default="n") -> bool:
        return self.get_io().prompt_user_for_confirmation(prompt_message, default)

    # End interaction stuff

    def _process_arguments(self, args, extra_args):
        """
        Validate and process command line arguments.

        Default behavior is to abort the application with an error if any
        unparsed arguments were found.

        :returns: Tuple of (args, extra_args) after processing
        """
        if extra_args:
            self._argparser.error("extra arguments found: %s" % " ".join(extra_args))

        return args, extra_args

    def setup(self, use_global_config=True):
        self.arguments, self.extra_arguments = self._process_arguments(
            self.arguments, self.extra_arguments
        )

        self._load_config(use_global_config=use_global_config)
        self._setup_loggers()

    def _load_config(self, use_global_config=True):
        """Load configuration."""

        self.cli_defines = {}

        if self.arguments.defines:
            res = []
            for string in self.arguments.defines:
                pair = string.split(":", 1)
                if len(pair) != 2:
                    raise SystemExit(
                        "Invalid configuration setting: {}\n"
                        "Settings must be in 'key:value' format".format(string)
                    )
                res.append(pair)
            self.cli_defines = dict(res)

        self.config = config.load(
            cfg_file=self.arguments.conf_file,
            environment=self.arguments.environment,
            overrides=self.cli_defines,
            use_global_config=use_global_config,
            use_local_config=(not self.arguments.no_local_config),
        )

    def _setup_loggers(self):
        """Setup logging."""
        log.setup_loggers(self.config, self.arguments.loglevel)

    def main(self, *extra_args):
        """
        Main business logic of the application.

        Parsed command line arguments are available in self.arguments. Global
        configuration is available in self.config. Unparsed command line
        arguments are passed as positional arguments.

        :returns: exit status
        """
        raise NotImplementedError()

    def handle_keyboard_interrupt(self):
        """
        Handle ctrl-c from interactive user.

        :returns: exit status
        """
        if self._have_announced:
            self.announce(
                "%s aborted (duration: %s)",
                self.program_name,
                utils.human_duration(self.get_duration()),
            )
        return 130

    def format_passthrough_args(self) -> list:
        """
        Returns a list with user-supplied cli config args in cli format. Makes
        it easy to pass along config args to locally spawned `swsdeploy`
        processes.

        For example, if the user passed config options `drush` and `log_json`
        on the command line, then the return value would be:

          ["-D", "drush:/usr/local/bin/drush", "-D", "log_json:false"]
        """
        cmd_line_args = [
            ["-D", "%s:%s" % (cli_arg, self.cli_defines.get(cli_arg))]
            for cli_arg in self.cli_defines.keys()
        ]
        return reduce(operator.concat, cmd_line_args, [])

    def _handle_exception(self, ex):
        """
        Handle unhandled exceptions and errors.

        :returns: exit status
        """
        logger = self.get_logger()
        exception_type = type(ex).__name__
        backtrace = True

        message = "%s failed: <%s> %s (swsdeploy version: %s)"

        if isinstance(ex, lock.LockFailedError) or getattr(
            ex, "_swsdeploy_no_backtrace", False
        ):
            backtrace = False

        if backtrace:
            logger.warning("Unhandled error:", exc_info=True)

        logger.error(
            message, self.program_name, exception_type, ex, version.__version__
        )
        return 70

    def _before_exit(self, exit_status):
        """
        Do any final cleanup or processing before the application exits.

        Called after :meth:`main` and before `sys.exit` even when an exception
        occurs.

        :returns: exit status
        """
        if utils.should_colorize_output():
            try:
                sys.stdout.write(log.ANSI_RESET)
                sys.stdout.flush()
            except OSError:
                pass

        return exit_status

    @contextmanager
    def lock(self, lock_file, **kwargs):
        """
        Acquire a lock for the main work of this application.
        """
        if "name" not in kwargs:
            kwargs["name"] = self.program_name

        with lock.Lock(lock_file, **kwargs):
            yield

    @contextmanager
    def lock_and_announce(self, lock_file, subject, **kwargs):
        """
        Acquire a lock for the main work of this application and announce its
        start and finish.
        """
        with self.lock(lock_file, **kwargs):
            start = time.time()
            self.announce("Started %s %s", self.program_name, subject)
            yield
            self.announce(
                "Finished %s %s (duration: %s)",
                self.program_name,
                subject,
                utils.human_duration(time.time() - start),
            )

    def Timer(self, label, logger=None):
        return log.Timer(label, logger=logger)

    @staticmethod
    def factory(argv=None):
        parser = arg.build_parser()
        args, extra_args = parser.parse_known_args(argv)
        if not hasattr(args, "which"):
            sys.exit("MUST provide subcommand, run with --help for a list")
        app = args.which(args.command)
        app._argparser = parser
        app.arguments = args
        app.extra_arguments = extra_args
        return app

    @classmethod
    def run(cls, argv=None):
        """
        Construct and run an application.

        Calls ``sys.exit`` with the exit status returned by the application.

        :param cls: Class to create and run
        :param argv: Command line arguments, defaults to ``sys.argv[1:]``
        """
        # Bootstrap the logging system
        logging.basicConfig(
            level=logging.INFO,
            format=log.CONSOLE_LOG_FORMAT,
            datefmt=log.TIMESTAMP_FORMAT,
            stream=sys.stdout,
        )

        # Silence noisy loggers early
        logging.getLogger("urllib3").setLevel(logging.WARNING)

        # Setup instance for logger access
        app = cls("swsdeploy")

        exit_status = 0
        try:
            app = Application.factory(argv)
            app.setup()

            if "subcommand" in app.arguments and app.arguments.subcommand:
                method = app.arguments.subcommand
                exit_status = method(app, app.extra_arguments)
            else:
                exit_status = app.main(app.extra_arguments)

        except KeyboardInterrupt:
            # Handle ctrl-c from interactive user
            exit_status = app.handle_keyboard_interrupt()

        except Exception as ex:
            # Handle all unhandled exceptions and errors
            exit_status = app._handle_exception(ex)

        finally:
            exit_status = app._before_exit(exit_status)

        # Flush logger before exiting
        logging.shutdown()

        sys.exit(exit_status)


def argument(*args, **kwargs):
    """
    argument(option_flags..[,action='store'][,nargs=1]\
       [,const=None][,default][,type=str][,choices][,required=False][,help]\
       [,dest])

    Decorator used to declare a command line argument on an
    :class:`Application`

    Maps a command line argument to the decorated class or method.

    :param str option_flags: One or more option flags associated with this
                             argument, e.g. '-a', '--arg'
    :param action: the action associated with this argument. e.g. 'store_true'
    :param default: The default value for this argument if not specified by the
                    user.
    :param str help: Short description of this argument, displayed in
                    ``--help`` text.
    :param list choices: List possible values for this argument.
    :param bool required: True if your argument is required.
    :param type type: The type of value accepted by your argument, e.g. int
    :param nargs: The number of values accepted by this argument.
    :type nargs: int, str
    """

    def wrapper(func):
        arguments = getattr(func, arg.ATTR_ARGUMENTS, [])
        arguments.append(dict(_flags=args, **kwargs))
        setattr(func, arg.ATTR_ARGUMENTS, arguments)
        return func

    return wrapper


COMMAND_REGISTRY = {}


def command(*args, **kwargs):
    """
    command(command_name, help="help text",[subcommands=False])

    Map a `swsdeploy` sub-command to the decorated class.

    :param str command_name: The name of the sub-command
    :param str help: A summary of your command to be displayed in `--help` text
    :type help: str or None
    :raises ValueError: if there is already a command named `command_name`

    **Usage Example**::

        import swsdeploy.cli as cli

        @cli.command('hello', help='prints "hello world" and exits')
        class HelloCommand(cli.Application):
            @cli.argument('--goodbye', action='store_true',
                          help='Say goodbye instead.')
            def main(self, extra_args):
                if self.arguments.goodbye:
                    print('Goodbye, cruel world.')
                else:
                    print('Hello, world.')

    """

    def wrapper(cls):
        name = args[0]
        if name in COMMAND_REGISTRY:
            err = 'Duplicate: A command named "%s" already exists.' % name
            raise ValueError(err)
        has_subcommands = kwargs.pop("subcommands", False)
        if has_subcommands:
            setattr(cls, arg.ATTR_SUBPARSER, True)

        COMMAND_REGISTRY[name] = dict(name=name, cls=cls, args=args, kwargs=kwargs)

        return cls

    return wrapper


def subcommand(name=None):
    """
    subcommand(command_name)

    Define an argparse subcommand by decorating a method on your
    cli.Application subclass.

    In order for this to have any affect, your cli.Application must be
    decorated with subcommands=True (see example below).

    **Usage Example**::

        import swsdeploy.cli as cli

        @cli.command('hello', subcommands=True,
                     help='prints "hello world" and exits',)
        class HelloCommand(cli.Application):
            @cli.subcommand('world')
            def world_subcommand(self, extra_args):
                print('hello world')

    """

    def wrapper(func):
        subcommand_name = func.__name__ if name is None else name
        setattr(func, arg.ATTR_SUBCOMMAND, subcommand_name)
        setattr(func, arg.ATTR_ARGUMENTS, getattr(func, arg.ATTR_ARGUMENTS, []))
        return func

    return wrapper


def all_commands():
    """
    Every registered command, including those provided by plugins.

    :returns: dict of command name to registry entry
    """
    import swsdeploy.plugins

    swsdeploy.plugins.load_plugins()
    return COMMAND_REGISTRY
