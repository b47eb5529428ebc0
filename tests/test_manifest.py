"""Tests for dotfile_linker.core.manifest."""

from __future__ import annotations

from pathlib import Path

import pytest

from dotfile_linker.core.manifest import (
    DEFAULT_REPO,
    LinkEntry,
    Manifest,
    ManifestError,
    default_manifest,
    default_manifest_path,
    load_manifest,
    save_manifest,
)
from dotfile_linker.core.models import LinkRequest


def test_default_manifest_without_joplin(home, dotfiles):
    requests = default_manifest().resolve()

    assert requests == [
        LinkRequest(dotfiles / ".zshrc", home / ".zshrc"),
        LinkRequest(dotfiles / "nvim", home / ".config" / "nvim"),
        LinkRequest(dotfiles / "wezterm", home / ".config" / "wezterm"),
    ]


def test_default_manifest_includes_joplin_when_present(home, dotfiles):
    (dotfiles / "joplin").mkdir()

    dests = [r.dest for r in default_manifest().resolve()]

    assert home / ".config" / "joplin-desktop" / "userchrome.css" in dests
    assert home / ".config" / "joplin-desktop" / "userstyle.css" in dests


def test_resolve_paths(home, tmp_path):
    manifest = Manifest(
        dotfiles_dir=tmp_path / "dots",
        links=[
            LinkEntry(source="/etc/hosts", dest=".hosts"),
            LinkEntry(source="git/config", dest="~/.gitconfig"),
        ],
    )

    requests = manifest.resolve()

    assert requests[0] == LinkRequest(Path("/etc/hosts"), home / ".hosts")
    assert requests[1].source == tmp_path / "dots" / "git" / "config"
    assert requests[1].dest == home / ".gitconfig"


def test_save_and_load(tmp_path):
    path = tmp_path / "cfg" / "manifest.yaml"
    manifest = default_manifest(tmp_path / "dots")

    save_manifest(manifest, path)
    loaded = load_manifest(path)

    assert loaded == manifest
    text = path.read_text()
    assert text.startswith("dotfiles_dir:")
    assert "requires: joplin" in text
    assert loaded.repo == DEFAULT_REPO


def test_load_minimal_manifest_uses_defaults(tmp_path):
    path = tmp_path / "m.yaml"
    path.write_text("links:\n  - source: .vimrc\n    dest: ~/.vimrc\n")

    manifest = load_manifest(path)

    assert str(manifest.dotfiles_dir) == "~/dotfiles"
    assert manifest.repo is None
    assert manifest.links == [LinkEntry(".vimrc", "~/.vimrc")]


@pytest.mark.parametrize(
    "content, message",
    [
        ("- just\n- a list\n", "mapping"),
        ("links: nope\n", "must be a list"),
        ("links:\n  - source: .zshrc\n", r"links\[0\]"),
        ("links: [\n", "Invalid YAML"),
    ],
)
def test_invalid_manifests(tmp_path, content, message):
    path = tmp_path / "bad.yaml"
    path.write_text(content)

    with pytest.raises(ManifestError, match=message):
        load_manifest(path)


def test_missing_manifest_file(tmp_path):
    with pytest.raises(ManifestError, match="Cannot read"):
        load_manifest(tmp_path / "absent.yaml")


def test_default_manifest_path_under_home(home):
    assert default_manifest_path() == home / ".config" / "dotfile-linker" / "manifest.yaml"
