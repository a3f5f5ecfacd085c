from textwrap import dedent
from unittest import mock

import pytest

from swsdeploy.plugins.github import format_pr_message, next_tag, parse_head_branch

REMOTE_SHOW = dedent(
    """
    * remote origin
      Fetch URL: git@github.com:SU-SWS/ace-gryphon.git
      Push  URL: git@github.com:SU-SWS/ace-gryphon.git
      HEAD branch: 2.x
      Remote branches:
        2.x     tracked
        3.x-dev tracked
    """
)


@pytest.mark.parametrize(
    "tag, increment, expected",
    [
        ("8.1.4", "patch", "8.1.5"),
        ("8.1.4", "minor", "8.2.0"),
        ("8.1.4", "major", "9.0.0"),
        ("v2.0.9", "patch", "2.0.10"),
        ("2.0.9-alpha1", "minor", "2.1.0"),
        ("3", "patch", "3.0.1"),
    ],
)
def test_next_tag(tag, increment, expected):
    assert next_tag(tag, increment) == expected


def test_next_tag_errors():
    with pytest.raises(ValueError):
        next_tag("8.1.4", "build")
    with pytest.raises(ValueError):
        next_tag("release-candidate", "patch")


def test_parse_head_branch():
    assert parse_head_branch(REMOTE_SHOW) == "2.x"
    assert parse_head_branch("* remote origin\n") is None


def run_subcommand(app):
    return app.arguments.subcommand(app, app.extra_arguments)


def test_base_branch(make_app, mocker, capsys):
    gitcmd = mocker.patch("swsdeploy.runcmd.gitcmd", return_value=REMOTE_SHOW)

    assert run_subcommand(make_app(["github", "base-branch"])) == 0

    gitcmd.assert_called_once_with("remote", "show", "origin")
    assert capsys.readouterr().out == "2.x\n"


def test_latest_tag(make_app, mocker, capsys):
    mocker.patch("swsdeploy.runcmd.gitcmd", return_value="2.4.1\n2.4.0\n2.3.7\n")

    run_subcommand(make_app(["github", "latest-tag"]))

    assert capsys.readouterr().out == "2.4.1\n"


def test_latest_tag_without_tags(make_app, mocker):
    mocker.patch("swsdeploy.runcmd.gitcmd", return_value="")

    with pytest.raises(SystemExit):
        run_subcommand(make_app(["github", "latest-tag"]))


def test_next_tag_subcommand(make_app, capsys):
    run_subcommand(make_app(["github", "next-tag", "2.4.1", "minor"]))

    assert capsys.readouterr().out == "2.5.0\n"


def test_changes_from_hash(make_app, mocker, capsys):
    gitcmd = mocker.patch(
        "swsdeploy.runcmd.gitcmd", return_value="Fix the footer links\n\n"
    )

    run_subcommand(make_app(["github", "changes-from-hash", "abc123"]))

    gitcmd.assert_called_once_with("log", "--format=%B", "-n", "1", "abc123")
    assert capsys.readouterr().out == "Fix the footer links\n"


def test_set_user_defaults(make_app, mocker):
    gitcmd = mocker.patch("swsdeploy.runcmd.gitcmd")

    assert run_subcommand(make_app(["github", "set-user"])) == 0

    assert gitcmd.call_args_list == [
        mock.call("config", "--global", "user.email", "sws-developers@lists.stanford.edu"),
        mock.call("config", "--global", "user.name", "CircleCI"),
    ]


def test_set_user_invalid_email(make_app, mocker):
    gitcmd = mocker.patch("swsdeploy.runcmd.gitcmd")

    with pytest.raises(SystemExit):
        run_subcommand(make_app(["github", "set-user", "--email", "nobody"]))

    gitcmd.assert_not_called()


def test_origin(make_app, mocker, capsys):
    gitcmd = mocker.patch(
        "swsdeploy.runcmd.gitcmd", return_value="git@github.com:SU-SWS/ace-gryphon.git\n"
    )

    assert run_subcommand(make_app(["github", "origin"])) == 0

    gitcmd.assert_called_once_with("config", "--get", "remote.origin.url")
    assert capsys.readouterr().out == "git@github.com:SU-SWS/ace-gryphon.git\n"


def test_diff(make_app, mocker, capsys):
    gitcmd = mocker.patch(
        "swsdeploy.runcmd.gitcmd",
        side_effect=[REMOTE_SHOW, "The following changes since commit abc123"],
    )

    assert run_subcommand(make_app(["github", "diff"])) == 0

    assert gitcmd.call_args_list == [
        mock.call("remote", "show", "origin"),
        mock.call("request-pull", "2.x", "./"),
    ]
    assert "The following changes since commit abc123" in capsys.readouterr().out


def test_diff_without_base_branch(make_app, mocker):
    gitcmd = mocker.patch("swsdeploy.runcmd.gitcmd", return_value="* remote origin\n")

    with pytest.raises(SystemExit):
        run_subcommand(make_app(["github", "diff"]))

    assert gitcmd.call_count == 1


def test_format_pr_message():
    message = format_pr_message("Update Drupal core", "- drupal/core 10.2.1 => 10.2.2")

    assert message.startswith("Update Drupal core\n\n# READY FOR REVIEW\n")
    assert "# Urgency\n- This is a maintenance pull request\n" in message
    assert message.endswith("up to date.\n\n- drupal/core 10.2.1 => 10.2.2\n")


def test_format_pr_message_strips_single_quotes():
    assert "'" not in format_pr_message("Don't merge", "it's fine")


def test_pr_message_subcommand(make_app, capsys):
    app = make_app(["github", "pr-message", "--title", "Weekly updates", "--changes", "- a"])

    assert run_subcommand(app) == 0

    out = capsys.readouterr().out
    assert out.startswith("Weekly updates\n\n# READY FOR REVIEW")
    assert "- a\n" in out
