"""Tests for the init CLI command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from cmsctl.cli import cli


class TestInitCommand:
    def test_init_basic(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["init", str(tmp_path)])
        assert result.exit_code == 0
        assert "init_project" in result.stdout
        assert (tmp_path / "cmsctl.toml").is_file()
        assert (tmp_path / ".cmsctl" / "cms.db").is_file()

    def test_init_json_output(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "init", str(tmp_path)])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["data"]["admin_role"] == "Admin"
        assert data["data"]["admin_actor_id"] == "00000000-0000-0000-0000-000000000001"

    def test_init_with_options(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        target = tmp_path / "site"
        result = cli_runner.invoke(
            cli,
            ["--json", "init", str(target), "--store-path", "data/cms.db", "--admin-role", "Owner"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["admin_role"] == "Owner"
        assert (target / "data" / "cms.db").is_file()
        assert 'admin_role = "Owner"' in (target / "cmsctl.toml").read_text(encoding="utf-8")

    def test_reinit_warns_and_keeps_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        cli_runner.invoke(cli, ["init", str(tmp_path), "--admin-role", "Owner"])
        result = cli_runner.invoke(cli, ["init", str(tmp_path)])
        assert result.exit_code == 0
        assert "already exists" in result.stderr
        assert 'admin_role = "Owner"' in (tmp_path / "cmsctl.toml").read_text(encoding="utf-8")

    def test_init_project_is_used_by_later_commands(
        self, cli_runner: CliRunner, tmp_path: Path
    ) -> None:
        cli_runner.invoke(cli, ["init", str(tmp_path), "--store-path", "data/cms.db"])
        config = str(tmp_path / "cmsctl.toml")
        result = cli_runner.invoke(cli, ["--json", "-c", config, "types", "list"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["total"] == 0
