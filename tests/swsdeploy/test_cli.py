import logging
import sys

import pytest

from swsdeploy import cli, lock
from swsdeploy.main import Sites, UpdateEnvironment, UpdateGroup


def test_factory_picks_command():
    app = cli.Application.factory(["update-environment", "--parallelism", "4", "01dev"])

    assert isinstance(app, UpdateEnvironment)
    assert app.program_name == "update-environment"
    assert app.arguments.env_name == "01dev"
    assert app.arguments.parallelism == 4
    assert app.arguments.sites is None


def test_factory_parses_worker_command_line():
    app = cli.Application.factory(
        [
            "update-group",
            "--report",
            "/tmp/swsdeploy-01dev.report",
            "--attempts",
            "2",
            "--partial-config-import",
            "--",
            "01dev",
            "alpha.01dev",
            "beta.01dev",
        ]
    )

    assert isinstance(app, UpdateGroup)
    assert app.arguments.env_name == "01dev"
    assert app.arguments.sites == ["alpha.01dev", "beta.01dev"]
    assert app.arguments.report == "/tmp/swsdeploy-01dev.report"
    assert app.arguments.attempts == 2
    assert app.arguments.partial_config_import
    assert not app.arguments.database_only


def test_factory_splits_site_list():
    app = cli.Application.factory(
        ["update-environment", "--sites", "@alpha.01dev, beta.01dev", "01dev"]
    )

    assert app.arguments.sites == ["@alpha.01dev", "beta.01dev"]


def test_factory_rejects_bad_parallelism():
    with pytest.raises(SystemExit):
        cli.Application.factory(["update-environment", "--parallelism", "0", "01dev"])


def test_commands_are_registered():
    commands = cli.all_commands()

    for name in (
        "update-environment",
        "update-group",
        "sites",
        "github",
        "keys",
        "slack",
        "unset-domain-301",
    ):
        assert name in commands
    assert commands["sites"]["cls"] is Sites


def test_duplicate_command_is_refused():
    with pytest.raises(ValueError):

        @cli.command("sites")
        class AnotherSites(cli.Application):
            pass


def test_get_script_path(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["/opt/swsdeploy/bin/swsdeploy", "sites"])

    app = cli.Application("swsdeploy")

    assert app.get_script_path() == "/opt/swsdeploy/bin/swsdeploy"


def test_load_config_with_defines():
    app = cli.Application.factory(
        ["sites", "--no-local-config", "-D", "drush:/opt/drush", "-D", "update_attempts:5", "01dev"]
    )
    app._load_config(use_global_config=False)

    assert app.config["drush"] == "/opt/drush"
    assert app.config["update_attempts"] == 5
    assert app.format_passthrough_args() == [
        "-D",
        "drush:/opt/drush",
        "-D",
        "update_attempts:5",
    ]


def test_load_config_rejects_malformed_define():
    app = cli.Application.factory(["sites", "--no-local-config", "-D", "drush", "01dev"])

    with pytest.raises(SystemExit):
        app._load_config(use_global_config=False)


def test_announce(make_app, caplog):
    app = make_app(["sites", "01dev"])

    with caplog.at_level(logging.INFO):
        app.announce("Started %s", "update")

    record = caplog.records[-1]
    assert record.name == "swsdeploy.announce"
    assert record.getMessage() == "Started update"
    assert app._have_announced


def test_announce_without_log_message(make_app, caplog):
    app = make_app(["sites", "--no-log-message", "01dev"])

    with caplog.at_level(logging.INFO):
        app.announce("Started %s", "update")

    assert [r.name for r in caplog.records] == ["sites"]
    assert not app._have_announced


def test_handle_exception(make_app, caplog):
    app = make_app(["sites", "01dev"])

    try:
        raise RuntimeError("boom")
    except RuntimeError as e:
        assert app._handle_exception(e) == 70

    assert "Unhandled error:" in caplog.text
    assert "sites failed: <RuntimeError> boom" in caplog.text


def test_handle_exception_without_backtrace(make_app, caplog):
    app = make_app(["sites", "01dev"])

    assert app._handle_exception(lock.LockFailedError("held")) == 70

    assert "Unhandled error:" not in caplog.text
    assert "<LockFailedError> held" in caplog.text


def test_handle_keyboard_interrupt(make_app):
    app = make_app(["sites", "01dev"])

    assert app.handle_keyboard_interrupt() == 130


def test_lock_and_announce(make_app, tmp_path, caplog):
    app = make_app(["sites", "01dev"])
    lock_file = str(tmp_path / "update.lock")

    with caplog.at_level(logging.INFO):
        with app.lock_and_announce(lock_file, "on 01dev", reason="testing"):
            with open(lock_file) as f:
                assert '"reason": "testing"' in f.read()

    messages = [r.getMessage() for r in caplog.records if r.name == "swsdeploy.announce"]
    assert messages[0] == "Started sites on 01dev"
    assert messages[-1].startswith("Finished sites on 01dev (duration: ")
