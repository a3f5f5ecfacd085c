# -*- coding: utf-8 -*-
"""
    swsdeploy.plugins.github
    ~~~~~~~~~~~~~~~~~~~~~~~~
    git helpers used by the release automation.

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
from packaging.version import InvalidVersion, Version

import swsdeploy.cli as cli
import swsdeploy.runcmd as runcmd
import swsdeploy.utils as utils

INCREMENTS = ("major", "minor", "patch")


def next_tag(tag: str, increment: str) -> str:
    """
    Increment the `increment` component of a semantic version tag.

    Lower components are reset to zero and pre-release suffixes dropped.

    >>> next_tag("8.1.4", "minor")
    '8.2.0'
    >>> next_tag("v2.0.9-alpha1", "patch")
    '2.0.10'
    """
    if increment not in INCREMENTS:
        raise ValueError(
            "Unknown increment %r, expected one of %s" % (increment, ", ".join(INCREMENTS))
        )
    try:
        version = Version(tag)
    except InvalidVersion:
        raise ValueError("%r is not a semantic version" % tag)

    major, minor, patch = version.major, version.minor, version.micro
    if increment == "major":
        return "%d.0.0" % (major + 1)
    if increment == "minor":
        return "%d.%d.0" % (major, minor + 1)
    return "%d.%d.%d" % (major, minor, patch + 1)


def parse_head_branch(remote_info: str):
    """Find the default branch in the output of `git remote show`."""
    for line in remote_info.splitlines():
        line = line.strip()
        if line.startswith("HEAD branch:"):
            return line.split(":", 1)[1].strip()
    return None


PR_TEMPLATE = """# READY FOR REVIEW

# Summary
- Automated pull request created via swsdeploy

# Review By (Date)
- As soon as possible

# Urgency
- This is a maintenance pull request

# Associated Issues and/or People
- This PR contains automated updates to keep the stack up to date."""


def format_pr_message(title="", changes=""):
    """
    Build a markdown pull request message: title, template, then changes.

    Single quotes are removed so the message can be passed along in a
    single quoted shell argument.
    """
    message = "%s\n\n%s\n\n%s\n" % (title, PR_TEMPLATE, changes)
    return message.replace("'", "")


@cli.command("github", help="git helpers for release automation", subcommands=True)
class GitHub(cli.Application):
    """
    git helpers for release automation.

    Every sub-command prints its result on stdout.
    """

    def _git(self, *args):
        with utils.suppress_backtrace():
            return runcmd.gitcmd(*args)

    def _base_branch(self):
        branch = parse_head_branch(self._git("remote", "show", "origin"))
        if branch is None:
            utils.abort("Could not determine the base branch of origin")
        return branch

    @cli.subcommand("base-branch")
    def base_branch(self, *extra_args):
        """Print the default branch of the origin remote."""
        print(self._base_branch())
        return 0

    @cli.subcommand("origin")
    def origin(self, *extra_args):
        """Print the URL of the origin remote."""
        print(self._git("config", "--get", "remote.origin.url").strip())
        return 0

    @cli.subcommand("diff")
    def diff(self, *extra_args):
        """Summarize the changes between the base branch and the working tree."""
        print(self._git("request-pull", self._base_branch(), "./"))
        return 0

    @cli.argument("--title", default="", help="Title of the pull request")
    @cli.argument("--changes", default="", help="Description of the changes")
    @cli.subcommand("pr-message")
    def pr_message(self, *extra_args):
        """Print a markdown pull request message."""
        print(format_pr_message(self.arguments.title, self.arguments.changes))
        return 0

    @cli.subcommand("latest-tag")
    def latest_tag(self, *extra_args):
        """Print the most recently created tag."""
        tags = self._git("tag", "--list", "--sort=-creatordate").split()
        if not tags:
            utils.abort("This repository has no tags")
        print(tags[0])
        return 0

    @cli.argument("tag", help="Current semantic version tag")
    @cli.argument("increment", choices=INCREMENTS, help="Version component to bump")
    @cli.subcommand("next-tag")
    def increment_tag(self, *extra_args):
        """Print the tag following TAG."""
        with utils.suppress_backtrace():
            print(next_tag(self.arguments.tag, self.arguments.increment))
        return 0

    @cli.argument("hash", help="Commit hash")
    @cli.subcommand("changes-from-hash")
    def changes_from_hash(self, *extra_args):
        """Print the commit message of HASH for use in a changelog."""
        print(self._git("log", "--format=%B", "-n", "1", self.arguments.hash).strip())
        return 0

    @cli.argument("--name", default=None, help="Name git should use")
    @cli.argument("--email", default=None, help="E-mail address git should use")
    @cli.subcommand("set-user")
    def set_user(self, *extra_args):
        """Configure the global git identity, by default the CI one."""
        name = self.arguments.name or self.config["git_user_name"]
        email = self.arguments.email or self.config["git_user_email"]

        if not utils.is_valid_email(email):
            utils.abort("'%s' is not a valid e-mail address" % email)

        self._git("config", "--global", "user.email", email)
        self._git("config", "--global", "user.name", name)
        self.get_logger().info("git will commit as %s <%s>", name, email)
        return 0
