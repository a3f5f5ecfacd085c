import logging
import sys
from unittest import mock

import pytest

from swsdeploy import main
from swsdeploy.report import RunResult, SiteUpdateError, UpdateReport

SITES = ["alpha.01dev", "beta.01dev", "gamma.01dev"]


@pytest.fixture
def aliases():
    aliases = mock.Mock()
    aliases.for_environment.return_value = list(SITES)
    aliases.hosts.return_value = {"web-1.dev": "alpha.01dev", "web-2.dev": "beta.01dev"}
    aliases.get.side_effect = lambda site: {
        "host": "web-1.dev",
        "uri": "%s.example.edu" % site.split(".")[0],
    }
    return aliases


@pytest.fixture
def update_environment(make_app, aliases, tmp_path):
    def _update_environment(*argv, **overrides):
        overrides.setdefault("lock_file", str(tmp_path / "update.lock"))
        overrides.setdefault("report_dir", str(tmp_path))
        app = make_app(["update-environment", "--no-log-message"] + list(argv), **overrides)
        app._aliases = aliases
        return app

    return _update_environment


def test_worker_command(update_environment, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["/srv/swsdeploy/bin/swsdeploy"])
    app = update_environment("--attempts", "2", "--configs-only", "01dev")
    app.cli_defines = {"drush": "/opt/drush"}

    command = app.get_worker_command(
        "01dev", "/tmp/run.report", app.get_options(), ["alpha.01dev", "beta.01dev"]
    )

    assert command == [
        "/srv/swsdeploy/bin/swsdeploy",
        "update-group",
        "--report",
        "/tmp/run.report",
        "--attempts",
        "2",
        "--configs-only",
        "-D",
        "drush:/opt/drush",
        "--",
        "01dev",
        "alpha.01dev",
        "beta.01dev",
    ]


def test_worker_command_forwards_config_flags(update_environment):
    app = update_environment("-e", "01dev", "--no-local-config", "-v", "01dev")

    command = app.get_worker_command("01dev", "/tmp/run.report", app.get_options(), ["a"])

    assert command[command.index("--attempts") + 1] == "3"
    assert command[command.index("-e") + 1] == "01dev"
    assert "--no-local-config" in command
    assert "-v" in command
    assert command[-3:] == ["--", "01dev", "a"]


def test_worker_command_round_trips(update_environment, make_app):
    app = update_environment("--rebuild-node-access", "--partial-config-import", "01dev")

    command = app.get_worker_command("01dev", "/tmp/run.report", app.get_options(), ["a", "b"])
    worker = make_app(command[1:])

    assert isinstance(worker, main.UpdateGroup)
    assert worker.arguments.sites == ["a", "b"]
    assert worker.get_options() == app.get_options()


def test_conflicting_options(update_environment):
    app = update_environment("--database-only", "--configs-only", "01dev")

    with pytest.raises(ValueError):
        app.get_options()


def test_parallelism_from_arguments(update_environment, monkeypatch):
    monkeypatch.setenv(main.PARALLELISM_ENV_VAR, "7")

    assert update_environment("--parallelism", "3", "01dev").get_parallelism() == 3


def test_parallelism_from_environment(update_environment, monkeypatch):
    monkeypatch.setenv(main.PARALLELISM_ENV_VAR, "7")

    assert update_environment("01dev").get_parallelism() == 7


def test_parallelism_from_config(update_environment, monkeypatch):
    monkeypatch.delenv(main.PARALLELISM_ENV_VAR, raising=False)

    assert update_environment("01dev", update_parallelism=4).get_parallelism() == 4


def test_invalid_parallelism_from_environment(update_environment, monkeypatch):
    monkeypatch.setenv(main.PARALLELISM_ENV_VAR, "lots")

    with pytest.raises(SystemExit):
        update_environment("01dev").get_parallelism()


def test_timeout(update_environment):
    assert update_environment("01dev").get_timeout() == 3600.0
    assert update_environment("--timeout", "0", "01dev").get_timeout() == 0


def test_get_sites(update_environment, aliases):
    app = update_environment("01dev")

    assert app._get_sites("01dev") == SITES
    aliases.for_environment.assert_called_with("01dev")


def test_get_sites_restricted(update_environment, caplog):
    app = update_environment("--sites", "@gamma.01dev,alpha.01dev,delta.01dev", "01dev")

    assert app._get_sites("01dev") == ["alpha.01dev", "gamma.01dev"]
    assert "Skipping unknown alias for 01dev: delta.01dev" in caplog.text


def test_check_connectivity(update_environment, mocker):
    operations = mocker.patch("swsdeploy.main.DrushSiteOperations").return_value
    operations.status.return_value = True

    update_environment("01dev")._check_connectivity("01dev")

    assert operations.status.call_args_list == [
        mock.call("alpha.01dev"),
        mock.call("beta.01dev"),
    ]


def test_check_connectivity_failure(update_environment, mocker):
    operations = mocker.patch("swsdeploy.main.DrushSiteOperations").return_value
    operations.status.side_effect = lambda site: site != "beta.01dev"

    with pytest.raises(RuntimeError) as excinfo:
        update_environment("01dev")._check_connectivity("01dev")

    assert "web-2.dev" in str(excinfo.value)
    assert excinfo.value._swsdeploy_no_backtrace


def test_update_environment(update_environment, mocker, tmp_path, caplog):
    caplog.set_level(logging.INFO)
    mocker.patch("swsdeploy.main.DrushSiteOperations").return_value.status.return_value = True
    updater_class = mocker.patch("swsdeploy.main.ParallelSiteUpdater")
    updater = updater_class.return_value
    updater.parallelism = 2
    updater.run.return_value = RunResult(succeeded=list(SITES))

    app = update_environment("--parallelism", "2", "--no-progress", "01dev")

    assert app.main() == 0
    updater.run.assert_called_once_with(SITES)

    args, kwargs = updater_class.call_args
    assert args[0].path.startswith(str(tmp_path))
    assert kwargs["parallelism"] == 2
    assert kwargs["timeout"] == 3600.0
    assert kwargs["mute"] is True

    worker_command = args[1]
    assert worker_command(["alpha.01dev"])[-3:] == ["--", "01dev", "alpha.01dev"]

    assert "Finished connectivity check (duration: " in caplog.text
    assert "Finished site updates (duration: " in caplog.text
    assert "Finished update-environment 01dev (duration: " in caplog.text


def test_update_environment_reports_failures(update_environment, mocker, caplog):
    mocker.patch("swsdeploy.main.DrushSiteOperations").return_value.status.return_value = True
    updater = mocker.patch("swsdeploy.main.ParallelSiteUpdater").return_value
    updater.parallelism = 10
    updater.run.return_value = RunResult(
        succeeded=["alpha.01dev"], failed=["gamma.01dev", "beta.01dev"]
    )

    caplog.set_level(logging.INFO)
    app = update_environment("01dev")

    with pytest.raises(SiteUpdateError) as excinfo:
        app.main()

    assert excinfo.value.failed == ["beta.01dev", "gamma.01dev"]
    assert (
        "Updated 1 site on 01dev. 2 sites failed to update: beta.01dev, gamma.01dev"
        in caplog.text
    )


def test_update_environment_without_sites(update_environment, aliases, mocker):
    aliases.for_environment.return_value = []
    updater_class = mocker.patch("swsdeploy.main.ParallelSiteUpdater")

    with pytest.raises(SystemExit):
        update_environment("01dev").main()

    updater_class.assert_not_called()


def test_update_group(make_app, fake_operations, mocker, tmp_path):
    operations = fake_operations(failing={"beta.01dev"})
    mocker.patch("swsdeploy.main.DrushSiteOperations", return_value=operations)
    report = UpdateReport(str(tmp_path / "run.report"))

    app = make_app(
        [
            "update-group",
            "--report",
            report.path,
            "--attempts",
            "2",
            "--",
            "01dev",
            "alpha.01dev",
            "beta.01dev",
        ]
    )

    assert app.main() == 0
    assert report.read() == [("alpha.01dev", True), ("beta.01dev", False)]
    assert operations.sites_called("updatedb") == ["alpha.01dev", "beta.01dev", "beta.01dev"]


def test_sites(make_app, aliases, capsys):
    app = make_app(["sites", "01dev"])
    app._aliases = aliases

    assert app.main() == 0

    out = capsys.readouterr().out
    for site in SITES:
        assert site in out
    assert "gamma.example.edu" in out
