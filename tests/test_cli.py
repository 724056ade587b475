"""Tests for the click CLI in main.py."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from main import cli


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CliRunner with all configured paths pointed at tmp_path."""
    monkeypatch.setattr("main.settings.database_path", str(tmp_path / "store.db"))
    monkeypatch.setattr("main.settings.export_dir", str(tmp_path / "exports"))
    monkeypatch.setattr("main.settings.label_output_dir", str(tmp_path / "labels"))
    return CliRunner()


def _generate(runner: CliRunner, *extra: str):
    return runner.invoke(
        cli,
        ["generate", "--product", "Fall Winter", "--year", "2024",
         "--attr", "article=Denim Jacket", *extra],
    )


class TestInitDb:
    def test_reports_stored_slots(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["init-db"])
        assert result.exit_code == 0, result.output
        assert "Stored slots: none" in result.output

        _generate(runner, "--size", "M")
        runner.invoke(cli, ["theme", "dark"])
        assert "Stored slots: skus, theme" in runner.invoke(cli, ["init-db"]).output


class TestGenerate:
    def test_generates_and_lists(self, runner: CliRunner) -> None:
        result = _generate(runner, "--size", "M", "--size", "L")
        assert result.exit_code == 0, result.output
        assert "FAL24-DEN-M" in result.output
        assert "FAL24-DEN-L" in result.output

        listing = runner.invoke(cli, ["list"])
        assert "Total: 2 SKU(s)" in listing.output

    def test_duplicate_reported(self, runner: CliRunner) -> None:
        _generate(runner, "--size", "M")
        result = _generate(runner, "--size", "M")
        assert "already exists, skipped" in result.output
        assert "Total: 1 SKU(s)" in runner.invoke(cli, ["list"]).output

    def test_dry_run(self, runner: CliRunner) -> None:
        result = _generate(runner, "--size", "M", "--dry-run")
        assert "Would add 1 SKU(s)" in result.output
        assert "No SKUs yet." in runner.invoke(cli, ["list"]).output

    def test_full_mode_and_rule(self, runner: CliRunner) -> None:
        result = runner.invoke(
            cli,
            ["generate", "--product", "Summer", "--attr", "article=Basic Tee",
             "--attr", "color=Navy Blue", "--full", "color", "--rule", "rule2",
             "--separator", ":", "--size", "s"],
        )
        assert result.exit_code == 0, result.output
        assert "S:BT:NAVYBLUE:S" in result.output

    def test_unknown_size(self, runner: CliRunner) -> None:
        result = _generate(runner, "--size", "XXXL")
        assert result.exit_code != 0
        assert "unknown size" in result.output

    def test_unknown_attribute(self, runner: CliRunner) -> None:
        result = _generate(runner, "--size", "M", "--attr", "fabric=Cotton")
        assert result.exit_code != 0
        assert "unknown attribute" in result.output

    def test_blank_product(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["generate", "--product", "  ", "--size", "M"])
        assert result.exit_code == 1
        assert "product is required" in result.output


class TestCollectionCommands:
    def test_delete(self, runner: CliRunner) -> None:
        _generate(runner, "--size", "S", "--size", "M")
        result = runner.invoke(cli, ["delete", "0"])
        assert "Deleted FAL24-DEN-S" in result.output
        assert "Total: 1 SKU(s)" in runner.invoke(cli, ["list"]).output

    def test_delete_out_of_range(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["delete", "3"])
        assert result.exit_code == 1
        assert "No SKU at position 3" in result.output

    def test_clear(self, runner: CliRunner) -> None:
        _generate(runner, "--size", "S", "--size", "M")
        result = runner.invoke(cli, ["clear", "--yes"])
        assert "Deleted 2 SKU(s)" in result.output

    def test_export_csv(self, runner: CliRunner, tmp_path: Path) -> None:
        _generate(runner, "--size", "M")
        result = runner.invoke(cli, ["export", "--format", "csv"])
        assert result.exit_code == 0, result.output
        content = (tmp_path / "exports" / "skus.csv").read_text()
        assert "FAL24-DEN-M" in content

    def test_export_xlsx_to_path(self, runner: CliRunner, tmp_path: Path) -> None:
        _generate(runner, "--size", "M")
        output = tmp_path / "out" / "codes.xlsx"
        result = runner.invoke(cli, ["export", "--format", "xlsx", "--output", str(output)])
        assert result.exit_code == 0, result.output
        assert output.read_bytes()[:2] == b"PK"

    def test_print_labels(self, runner: CliRunner, tmp_path: Path) -> None:
        _generate(runner, "--size", "M")
        result = runner.invoke(cli, ["print-labels"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "labels" / "labels.pdf").exists()

    def test_print_labels_unencodable(self, runner: CliRunner) -> None:
        runner.invoke(cli, ["generate", "--product", "Été Drop", "--size", "M"])
        result = runner.invoke(cli, ["print-labels"])
        assert result.exit_code == 1
        assert "cannot be encoded as Code128" in result.output

    def test_theme(self, runner: CliRunner) -> None:
        assert runner.invoke(cli, ["theme"]).output.strip() == "light"
        assert "Theme set to dark" in runner.invoke(cli, ["theme", "dark"]).output
        assert runner.invoke(cli, ["theme"]).output.strip() == "dark"
