# -*- coding: utf-8 -*-
"""
    swsdeploy.utils
    ~~~~~~~~~~~~~~~
    Contains misc utility functions.

"""
import contextlib
import fcntl
from functools import wraps
import inspect
import logging
import os
import pwd
import re
import sys

import yaml


def get_real_username():
    """Get the username of the user that initiated the current operation."""
    try:
        # Get the username of the user owning the terminal (ie the user
        # that is running swsdeploy even if they are sudo-ing something)
        return os.getlogin()
    except OSError:
        # When running under CI there is no terminal so os.getlogin()
        # blows up. Use the username matching the effective user id
        # instead.
        return get_username()


def get_username(user=None):
    """Get the username of the effective user."""
    if user is None:
        user = os.getuid()
    return pwd.getpwuid(user)[0]


def get_env_specific_filename(path, env=None):
    """
    Find a file specific to the environment in which swsdeploy is running.

    If the environment specific file does not exist, return the original
    path.
    """
    if env is None:
        return path

    base = os.path.dirname(path)
    filename = os.path.basename(path)

    env_filename = os.path.join(base, "environments", env, filename)

    if os.path.isfile(env_filename):
        return env_filename

    return path


def human_duration(elapsed):
    """
    Format an elapsed seconds count as human readable duration.

    >>> human_duration(1)
    '00m 01s'
    >>> human_duration(65)
    '01m 05s'
    >>> human_duration(60*30+11)
    '30m 11s'
    """
    return "%02dm %02ds" % divmod(elapsed, 60)


LOGGER_STACK = []


@contextlib.contextmanager
def context_logger(context_name, *args):
    """
    Context manager that maintains nested logger contexts.

    Each time you enter a with block using this context manager,
    a named logger is set up as a child of the current logger.
    When exiting the with block, the logger gets popped off the stack and
    the parent logger takes it's place as the 'current' logging context.

    The easiest way to use this is to decorate a function with log_context,
    For Example::

        @log_context('name')
        def my_func(some, args, logger=None):
            logger.debug('something')

    """
    if len(LOGGER_STACK) < 1:
        LOGGER_STACK.append(logging.getLogger())

    parent = LOGGER_STACK[-1]

    logger = parent.getChild(context_name)
    LOGGER_STACK.append(logger)
    try:
        yield logger
    finally:
        LOGGER_STACK.pop()


def log_context(context_name):
    """
    Decorator to wrap the a function in a new context_logger.

    The logger is passed to the function via a kwarg named 'logger'.
    """

    def arg_wrapper(func):
        @wraps(func)
        def context_wrapper(*args, **kwargs):
            argspec = inspect.getfullargspec(func)

            # Check if logger was passed as a positional argument
            try:
                logger = args[argspec.args.index("logger")]
            except IndexError:
                logger = None
            except ValueError:
                logger = None

            # Check if logger was passed as a keyword argument
            if logger is None:
                logger = kwargs.get("logger", None)

            if logger is not None:
                return func(*args, **kwargs)

            with context_logger(context_name) as logger:
                kwargs["logger"] = logger
                return func(*args, **kwargs)

        return context_wrapper

    return arg_wrapper


def get_logger():
    if LOGGER_STACK:
        return LOGGER_STACK[-1]
    return logging.getLogger()


@contextlib.contextmanager
def suppress_backtrace():
    """
    Context manager that sets the "don't backtrace" flag on any exception
    that occurs within context.

    Can be overridden by setting the environment variable
    `SWSDEPLOY_BACKTRACE`.

    Example:
       def my_function():
           with suppress_backtrace():
              some_function_that_may_reasonably_fail()
    """
    try:
        yield
    except Exception as e:
        # This value is read by _handle_exception in cli.py
        e._swsdeploy_no_backtrace = os.environ.get("SWSDEPLOY_BACKTRACE", None) is None
        raise


def mkdir_p(path):
    """
    Create directory path.

    :param path: The directory path to be created.
    """
    if not os.path.exists(path):
        os.makedirs(path)


@contextlib.contextmanager
def open_with_lock(path, mode="r", *args, **kwargs):
    """
    Opens the given file and acquires an advisory lock using the open file
    object. If the mode is read-only ('r' or 'rb'), the lock is acquired as
    shared, and otherwise acquired as exclusive.
    """
    lock_cmd = fcntl.LOCK_SH if mode in {"r", "rb"} else fcntl.LOCK_EX

    with open(path, mode, *args, **kwargs) as f:
        try:
            fcntl.lockf(f, lock_cmd)
            yield f
        finally:
            fcntl.lockf(f, fcntl.LOCK_UN)


def retry(func, *args, max_attempts=3, logger=None, **kwargs):
    """
    Call `func` until it returns a truthy value, at most `max_attempts` times.

    There is no delay between attempts. The first truthy result is returned;
    when every attempt fails the last (falsy) result is returned.

    >>> retry(lambda: 42)
    42
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    result = None
    for attempt in range(1, max_attempts + 1):
        result = func(*args, **kwargs)
        if result:
            return result
        if logger is not None and attempt < max_attempts:
            logger.info(
                "Attempt %d of %d failed, trying again", attempt, max_attempts
            )
    return result


def ordered_load(stream, Loader=yaml.SafeLoader):
    """
    Load a YAML document, failing loudly on anything that is not a mapping.
    """
    data = yaml.load(stream, Loader=Loader)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Expected a YAML mapping in %s" % getattr(stream, "name", stream))
    return data


def abort(message):
    raise SystemExit("Aborting: %s" % message)


def is_valid_email(address: str) -> bool:
    """
    Loose check that 'address' looks like an e-mail address.

    >>> is_valid_email("sws-developers@lists.stanford.edu")
    True
    >>> is_valid_email("not an address")
    False
    """
    return re.match(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", address) is not None


def pluralize(word: str, quantity) -> str:
    """
    If 'quantity' represents a quantity of one, returns 'word',
    otherwise, returns the pluralized version of 'word'.

    'quantity' can be an int, or an object that works with len().
    """
    if not (isinstance(quantity, int)):
        quantity = len(quantity)

    if quantity == 1:
        return word

    for suffix in ["s", "sh", "ch", "x", "z"]:
        if word.endswith(suffix):
            return word + "es"
    return word + "s"


def should_colorize_output() -> bool:
    return sys.stderr.isatty() or "FORCE_COLOR" in os.environ
