# This module contains functions that run external commands, one function for
# each command. Only the specific ways in which swsdeploy needs to run the
# commands is supported. All functions check the exit code of the command, and
# raise FailedCommand, if not zero.
#
# The functions can take the cwd keyword argument to specify the directory in
# which the command should be invoked.

import logging
import subprocess


class FailedCommand(Exception):
    """Exception for when a command fails (exits non-zero)

    Exception attributes exitcode, stdout, and stderr hold the command's exit
    code, captured standard output, and captured standard error.
    """

    def __init__(self, command, exitcode, stdout, stderr):
        Exception.__init__(
            self,
            "Command '{command}' failed with exit code {exitcode}; stderr:\n{stderr}".format(
                command=command, exitcode=exitcode, stderr=stderr
            ),
        )
        self.exitcode = exitcode
        self.stdout = stdout
        self.stderr = stderr


def _runcmd(argv, **kwargs):
    """Run an external command, return its stdout

    Raises FailedCommand if command exit code is not zero.

    Keyword arguments are passed to subprocess.Popen, except that stdout,
    stderr, and stdin are overridden to capture output and make stdin come
    from /dev/null.
    """

    # Set keyword arguments to capture stdout and stderr.
    kwargs["stdout"] = subprocess.PIPE
    kwargs["stderr"] = subprocess.PIPE

    # Open /dev/null so stdin can be redirected to come from there. This way,
    # if a command is accidentally invoked in a way that it reads from stdin,
    # it won't get stuck.
    with open("/dev/null", "rb") as devnull:
        kwargs["stdin"] = devnull

        logging.debug(
            "Running {argv!r} with {kwargs!r}".format(argv=argv, kwargs=kwargs)
        )
        p = subprocess.Popen(argv, **kwargs)

    # Wait for command to finish.
    (stdout, stderr) = p.communicate()

    logging.debug("Command exited with code %s", p.returncode)

    if p.returncode != 0:
        raise FailedCommand(
            " ".join(argv), p.returncode, stdout.decode("UTF8"), stderr.decode("UTF8")
        )

    return stdout


def gitcmd(subcommand, *args, **kwargs):
    """Run a git subcommand, return its stdout

    Return the output of git as a Unicode string.
    """
    return _runcmd(["git", subcommand] + list(args), **kwargs).decode("UTF8")


def drush(alias, command, *args, **kwargs):
    """Run a drush command, return its stdout as a Unicode string.

    `alias` is a site alias without the leading '@', or None to run against
    the local site. The drush binary can be replaced with the `binary`
    keyword argument.
    """
    binary = kwargs.pop("binary", "drush")
    argv = [binary]
    if alias:
        argv.append("@" + alias.lstrip("@"))
    argv.append(command)
    argv.extend(args)
    return _runcmd(argv, **kwargs).decode("UTF8")


def rsync(source, destination, *args, **kwargs):
    """Copy `source` to `destination` with rsync, return its stdout"""
    argv = ["rsync", "--recursive", "--cvs-exclude", "--human-readable", "--stats"]
    argv.extend(args)
    argv.extend([source, destination])
    return _runcmd(argv, **kwargs).decode("UTF8")
