import pytest

from swsdeploy import cli, config
from swsdeploy.operations import RemoteSiteOperations
from swsdeploy.report import UpdateReport


class FakeSiteOperations(RemoteSiteOperations):
    """
    Records every call. Sites in `failing` fail every step, sites in `broken`
    raise, and `flaky` maps a site to the number of times its database
    updates fail before succeeding.
    """

    def __init__(self, failing=(), broken=(), flaky=None):
        self.failing = set(failing)
        self.broken = set(broken)
        self.flaky = dict(flaky or {})
        self.calls = []

    def _step(self, name, site):
        self.calls.append((name, site))
        if site in self.broken:
            raise RuntimeError("%s is unreachable" % site)
        return site not in self.failing

    def apply_database_migrations(self, site):
        if self.flaky.get(site, 0) > 0:
            self.flaky[site] -= 1
            self.calls.append(("updatedb", site))
            return False
        return self._step("updatedb", site)

    def import_configuration(self, site, partial=False):
        return self._step("config:import --partial" if partial else "config:import", site)

    def rebuild_cache(self, site):
        return self._step("cache:rebuild", site)

    def rebuild_node_access(self, site):
        return self._step("node_access_rebuild", site)

    def sites_called(self, name):
        return [site for step, site in self.calls if step == name]


@pytest.fixture
def fake_operations():
    return FakeSiteOperations


@pytest.fixture
def report(tmp_path):
    report = UpdateReport(str(tmp_path / "update.report"))
    report.create()
    return report


@pytest.fixture
def make_app():
    """
    Build a fully parsed application with the default configuration, without
    reading any configuration file or touching the logging setup.
    """

    def _make_app(argv, **overrides):
        app = cli.Application.factory(argv)
        app.cli_defines = {}
        app.config = {key: value for key, (_, value) in config.DEFAULT_CONFIG.items()}
        app.config["environment"] = None
        app.config.update(overrides)
        return app

    return _make_app
