import sys
from textwrap import dedent

import pytest

import swsdeploy.cli as cli
import swsdeploy.plugins as plugins


@pytest.fixture
def plugin_state(monkeypatch):
    monkeypatch.setattr(plugins, "__path__", list(plugins.__path__))
    monkeypatch.setattr(plugins, "__all__", list(plugins.__all__))
    monkeypatch.setattr(plugins, "LOADED_PLUGINS", {})
    monkeypatch.setattr(cli, "COMMAND_REGISTRY", dict(cli.COMMAND_REGISTRY))


def test_find_plugins(tmp_path, plugin_state):
    for name in ("hello.py", "_private.py", "github.py", "notes.txt"):
        (tmp_path / name).write_text("")

    assert plugins.find_plugins([None, str(tmp_path / "missing"), str(tmp_path)]) == [
        "hello"
    ]
    assert str(tmp_path) in plugins.__path__


def test_load_plugins(tmp_path, plugin_state, monkeypatch):
    (tmp_path / "greeting_plugin.py").write_text(
        dedent(
            """
            import swsdeploy.cli as cli


            @cli.command("greeting", help="Say hello")
            class Greeting(cli.Application):
                def main(self, *extra_args):
                    return 0
            """
        )
    )
    monkeypatch.delitem(sys.modules, "swsdeploy.plugins.greeting_plugin", raising=False)

    plugins.load_plugins(str(tmp_path))

    assert "Greeting" in plugins.LOADED_PLUGINS
    assert "greeting" in cli.COMMAND_REGISTRY
    assert "Greeting" in plugins.__all__

    # loading again is a no-op
    plugins.load_plugins(str(tmp_path))
    assert list(plugins.LOADED_PLUGINS) == ["Greeting"]
