# -*- coding: utf-8 -*-
"""
    swsdeploy.notify
    ~~~~~~~~~~~~~~~~
    Posting messages to Slack incoming webhooks.

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
import requests

import swsdeploy.utils as utils


class Slack:
    """Minimal client for a Slack incoming webhook."""

    def __init__(self, webhook_url, token=None, timeout=3.0):
        self.webhook_url = webhook_url
        self.token = token
        self.timeout = timeout

    def headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = "Bearer %s" % self.token
        return headers

    def post(self, message: str) -> requests.Response:
        """
        Send `message` to the webhook.

        :raises requests.HTTPError: if Slack rejects the message
        """
        response = requests.post(
            self.webhook_url,
            json={"text": message},
            headers=self.headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response


def format_run_summary(environment, result) -> str:
    """
    Build the notification text for an update-environment run.

    :param environment: name of the updated environment
    :param result: :class:`swsdeploy.report.RunResult`
    """
    succeeded = len(result.succeeded)
    message = "Updated %d %s on %s." % (
        succeeded,
        utils.pluralize("site", succeeded),
        environment,
    )
    if result.failed:
        message += " %d %s failed to update: %s" % (
            len(result.failed),
            utils.pluralize("site", result.failed),
            ", ".join(sorted(result.failed)),
        )
    return message
