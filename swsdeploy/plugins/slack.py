# -*- coding: utf-8 -*-
"""
    swsdeploy.plugins.slack
    ~~~~~~~~~~~~~~~~~~~~~~~
    Post to the release notifications channel.

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
import swsdeploy.notify as notify
import swsdeploy.utils as utils

DEFAULT_MESSAGE = "Test message, please disregard."


@cli.command("slack", help="Post a message to the release notifications channel")
class SlackMessage(cli.Application):
    """Post a message to the release notifications Slack channel."""

    @cli.argument("message", nargs="*", help="Message to post")
    def main(self, *extra_args):
        message = " ".join(self.arguments.message) or DEFAULT_MESSAGE

        if not self.config["slack_webhook_url"]:
            self.get_logger().warning("No release notifications webhook configured.")
            return 0

        slack = notify.Slack(
            self.config["slack_webhook_url"],
            token=self.config["slack_token"],
            timeout=self.config["slack_timeout"],
        )
        with utils.suppress_backtrace():
            slack.post(message)

        self.get_logger().info("Posted to the release notifications channel")
        return 0
