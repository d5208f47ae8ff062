from __future__ import annotations

import json

from click.testing import CliRunner

from addonhub.cli.main import cli
from tests.unit.addons.fakes import FakeHandler, Harness, make_addon


def invoke(harness: Harness, *args: str):
    runner = CliRunner()
    return runner.invoke(cli, list(args), obj={"service": harness.service, "bus": harness.bus})


def test_list_shows_reconciled_catalog() -> None:
    handler = FakeHandler()
    h = Harness(handlers=[handler], remote=[make_addon("mqtt", "4.1.0"), make_addon("zwave")])

    result = invoke(h, "list")

    assert result.exit_code == 0, result.output
    assert "hub:binding:mqtt" in result.output
    assert "hub:binding:zwave" in result.output


def test_list_installed_only() -> None:
    handler = FakeHandler()
    h = Harness(handlers=[handler], remote=[make_addon("mqtt")])

    result = invoke(h, "list", "--installed")

    assert result.exit_code == 0
    assert "No addons found" in result.output


def test_install_and_uninstall_commands() -> None:
    handler = FakeHandler()
    h = Harness(handlers=[handler], remote=[make_addon("mqtt")])

    result = invoke(h, "install", "binding:mqtt")
    assert result.exit_code == 0, result.output
    assert "Installed hub:binding:mqtt" in result.output
    assert handler.installed == {"hub:binding:mqtt"}

    result = invoke(h, "uninstall", "hub:binding:mqtt")
    assert result.exit_code == 0, result.output
    assert "Uninstalled hub:binding:mqtt" in result.output


def test_failed_install_exits_non_zero() -> None:
    h = Harness(handlers=[FakeHandler()])

    result = invoke(h, "install", "hub:binding:ghost")

    assert result.exit_code == 1
    assert "not known" in result.output


def test_show_unknown_addon() -> None:
    h = Harness(handlers=[FakeHandler()])
    result = invoke(h, "show", "hub:binding:ghost")
    assert result.exit_code == 1


def test_show_addon() -> None:
    h = Harness(handlers=[FakeHandler()], remote=[make_addon("mqtt", "4.1.0", description="Broker")])
    result = invoke(h, "show", "binding:mqtt")
    assert result.exit_code == 0, result.output
    assert "4.1.0" in result.output
    assert "Broker" in result.output


def test_types_command() -> None:
    result = invoke(Harness(), "types")
    assert result.exit_code == 0
    for name in ("automation", "binding", "transformation", "voice"):
        assert name in result.output


def test_commands_build_service_from_settings(tmp_path) -> None:
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"data_dir": str(tmp_path / "data")}), encoding="utf-8")

    result = CliRunner().invoke(cli, ["--settings", str(settings), "list"], obj={})

    assert result.exit_code == 0, result.output
    assert "No addons found" in result.output
    assert (tmp_path / "data" / "store" / "records.sqlite").exists()
