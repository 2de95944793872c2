"""Tests for the root cmsctl CLI."""

import json

import pytest
from click.testing import CliRunner

from cmsctl import __version__
from cmsctl.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "cmsctl" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


# --- Global flags ---


@pytest.mark.parametrize(
    "flags",
    [
        ["--json"],
        ["-q"],
        ["-v"],
        ["--log-json"],
        ["-c", "/tmp/missing-cmsctl.toml"],
        ["--actor", "00000000-0000-0000-0000-000000000001"],
        ["--role", "Editor", "--role", "Reader"],
    ],
)
def test_global_flag_accepted(cli_runner: CliRunner, flags: list[str]) -> None:
    result = cli_runner.invoke(cli, [*flags, "--version"])
    assert result.exit_code == 0


@pytest.mark.usefixtures("_isolated_project")
def test_verbose_json_carries_telemetry(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--json", "-v", "types", "list"])
    assert result.exit_code == 0
    telemetry = json.loads(result.stdout)["meta"]["telemetry"]
    assert telemetry["name"] == "ContentTypeService.list_content_types"


@pytest.mark.usefixtures("_isolated_project")
def test_json_without_verbose_has_no_telemetry(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--json", "types", "list"])
    assert result.exit_code == 0
    assert "telemetry" not in (json.loads(result.stdout)["meta"] or {})


# --- Command groups registered ---

EXPECTED_GROUPS = ["types", "rules", "items", "perms"]

EXPECTED_COMMANDS = ["init"]


@pytest.mark.parametrize("group", EXPECTED_GROUPS)
def test_group_registered(cli_runner: CliRunner, group: str) -> None:
    result = cli_runner.invoke(cli, [group, "--help"])
    assert result.exit_code == 0, f"{group} --help failed: {result.output}"


@pytest.mark.parametrize("command", EXPECTED_COMMANDS)
def test_command_registered(cli_runner: CliRunner, command: str) -> None:
    result = cli_runner.invoke(cli, [command, "--help"])
    assert result.exit_code == 0, f"{command} --help failed: {result.output}"


def test_all_commands_in_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    for name in EXPECTED_GROUPS + EXPECTED_COMMANDS:
        assert name in result.output, f"{name} missing from --help"
