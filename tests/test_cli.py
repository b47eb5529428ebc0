"""CLI tests for dotfile_linker.cli, run against a temporary HOME."""

from __future__ import annotations

import json
import os

from typer.testing import CliRunner

from dotfile_linker.cli import app
from dotfile_linker.core.repo import RepoSyncError, SyncAction

runner = CliRunner()


def test_link_yes_backs_up_and_links(home, dotfiles):
    (home / ".zshrc").write_text("X")

    result = runner.invoke(app, ["link", "--yes"])

    assert result.exit_code == 0, result.output
    assert "1 backed_up_and_linked, 2 linked" in result.output
    assert "All original files were backed up to" in result.output
    assert os.readlink(home / ".zshrc") == str(dotfiles / ".zshrc")
    assert (home / ".config" / "nvim").is_symlink()


def test_link_prompts_for_existing_files(home, dotfiles):
    (home / ".zshrc").write_text("X")

    result = runner.invoke(app, ["link"], input="y\n")

    assert result.exit_code == 0, result.output
    assert "Configuration already exists at" in result.output
    assert (home / ".zshrc").is_symlink()


def test_link_declined_prompt_keeps_file(home, dotfiles):
    (home / ".zshrc").write_text("X")

    result = runner.invoke(app, ["link"], input="n\n")

    assert result.exit_code == 0, result.output
    assert "1 skipped_by_user" in result.output
    assert (home / ".zshrc").read_text() == "X"


def test_link_no_input_never_replaces(home, dotfiles):
    (home / ".zshrc").write_text("X")

    result = runner.invoke(app, ["link", "--no-input"])

    assert result.exit_code == 0, result.output
    assert not (home / ".zshrc").is_symlink()
    assert not any(p.name.startswith("dotfiles_backup_") for p in home.iterdir())


def test_link_json_output(home, dotfiles, tmp_path):
    (home / ".zshrc").write_text("X")
    backup_root = tmp_path / "backups"

    result = runner.invoke(app, ["link", "--yes", "--json", "--backup-root", str(backup_root)])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["ok"] is True
    assert data["backup_dir"].startswith(str(backup_root / "dotfiles_backup_"))
    assert [o["status"] for o in data["outcomes"]] == [
        "backed_up_and_linked",
        "linked",
        "linked",
    ]


def test_link_json_refuses_to_prompt(home, dotfiles):
    """--json alone would mix a prompt into the JSON, so it is rejected."""
    (home / ".zshrc").write_text("X")

    result = runner.invoke(app, ["link", "--json"], input="y\n")

    assert result.exit_code == 2
    assert "--json needs --yes or --no-input" in result.output
    assert (home / ".zshrc").read_text() == "X"


def test_link_json_no_input_output_parses(home, dotfiles):
    (home / ".zshrc").write_text("X")

    result = runner.invoke(app, ["link", "--json", "--no-input"], input="y\n")

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["outcomes"][0]["status"] == "skipped_by_user"
    assert (home / ".zshrc").read_text() == "X"


def test_link_twice_is_idempotent(home, dotfiles):
    (home / ".zshrc").write_text("X")

    runner.invoke(app, ["link", "--yes"])
    result = runner.invoke(app, ["link", "--yes", "--json"])

    data = json.loads(result.output)
    assert data["backup_dir"] is None
    assert {o["status"] for o in data["outcomes"]} == {"already_linked"}


def test_link_failure_exits_nonzero(home, dotfiles, tmp_path):
    manifest = tmp_path / "manifest.yaml"
    manifest.write_text(
        f"dotfiles_dir: {dotfiles}\n"
        "links:\n"
        "  - source: missing.conf\n"
        "    dest: ~/.missing.conf\n"
        "  - source: .zshrc\n"
        "    dest: ~/.zshrc\n"
    )

    result = runner.invoke(app, ["link", "--yes", "--manifest", str(manifest)])

    assert result.exit_code == 1
    assert "source-missing" in result.output
    assert (home / ".zshrc").is_symlink()


def test_link_without_dotfiles_dir(home):
    result = runner.invoke(app, ["link", "--yes"])

    assert result.exit_code == 1
    assert "Dotfiles directory not found" in result.output


def test_link_rejects_conflicting_flags(home, dotfiles):
    result = runner.invoke(app, ["link", "--yes", "--no-input"])

    assert result.exit_code == 2
    assert "mutually exclusive" in result.output


def test_link_bad_manifest(home, tmp_path):
    """The error stays on one line even when the path is longer than the terminal."""
    manifest = tmp_path / ("deeply_nested_directory_name_" * 3) / "manifest.yaml"
    manifest.parent.mkdir()
    manifest.write_text("links: nope\n")

    result = runner.invoke(app, ["link", "--manifest", str(manifest)])

    assert result.exit_code == 1
    assert "must be a list" in result.output


def test_link_writes_log_file(home, dotfiles, tmp_path):
    log_file = tmp_path / "logs" / "run.log"

    result = runner.invoke(app, ["link", "--yes", "--log-file", str(log_file)])

    assert result.exit_code == 0, result.output
    text = log_file.read_text()
    assert "Attempting to link" in text
    assert "Linked new file" in text


def test_status_does_not_modify(home, dotfiles):
    (home / ".zshrc").write_text("X")

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0, result.output
    assert "3 of 3 links need attention" in result.output
    assert (home / ".zshrc").read_text() == "X"
    assert not (home / ".config").exists()


def test_init_manifest_then_link_uses_it(home, tmp_path):
    custom = tmp_path / "elsewhere"
    custom.mkdir()
    (custom / ".zshrc").write_text("# custom\n")

    result = runner.invoke(app, ["init-manifest", "--dotfiles-dir", str(custom)])
    assert result.exit_code == 0, result.output
    assert (home / ".config" / "dotfile-linker" / "manifest.yaml").is_file()

    result = runner.invoke(app, ["link", "--yes"])
    assert result.exit_code == 1
    assert os.readlink(home / ".zshrc") == str(custom / ".zshrc")
    assert not os.path.lexists(home / ".config" / "nvim")


def test_init_manifest_refuses_overwrite(home, tmp_path):
    target = tmp_path / "m.yaml"
    target.write_text("links: []\n")

    result = runner.invoke(app, ["init-manifest", "--output", str(target)])
    assert result.exit_code == 1
    assert target.read_text() == "links: []\n"

    result = runner.invoke(app, ["init-manifest", "--output", str(target), "--force"])
    assert result.exit_code == 0
    assert "links:" in target.read_text()
    assert ".zshrc" in target.read_text()


def test_backups_lists_previous_runs(home, dotfiles):
    (home / ".zshrc").write_text("X")
    runner.invoke(app, ["link", "--yes"])

    result = runner.invoke(app, ["backups"])

    assert result.exit_code == 0, result.output
    assert "Backups (1)" in result.output


def test_backups_none_found(home):
    result = runner.invoke(app, ["backups"])

    assert result.exit_code == 0
    assert "No backups found" in result.output


def test_sync_reports_clone(home, monkeypatch):
    seen = {}

    def fake_sync(repo_url, target):
        seen["args"] = (repo_url, target)
        return SyncAction.CLONED

    monkeypatch.setattr("dotfile_linker.core.repo.sync_repo", fake_sync)

    result = runner.invoke(app, ["sync", "--repo", "https://example.com/d.git"])

    assert result.exit_code == 0, result.output
    assert "Repository cloned" in result.output
    assert seen["args"] == ("https://example.com/d.git", home / "dotfiles")


def test_sync_failure(home, monkeypatch):
    def fake_sync(repo_url, target):
        raise RepoSyncError("Command failed (128): git pull")

    monkeypatch.setattr("dotfile_linker.core.repo.sync_repo", fake_sync)

    result = runner.invoke(app, ["sync"])

    assert result.exit_code == 1
    assert "Command failed" in result.output
