from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from dotfile_linker.core.models import LinkRequest

logger = logging.getLogger(__name__)

DEFAULT_DOTFILES_DIR = "~/dotfiles"
DEFAULT_REPO = "https://github.com/instantfred/dotfiles.git"


def default_manifest_path() -> Path:
    """Where the CLI looks for a manifest when --manifest is not given."""
    return Path.home() / ".config" / "dotfile-linker" / "manifest.yaml"


class ManifestError(ValueError):
    """The manifest file is missing required keys or has the wrong shape."""


@dataclass
class LinkEntry:
    """One manifest line: link ``dest`` to ``source``.

    ``source`` is relative to the dotfiles directory unless absolute.
    ``requires`` names a path under the dotfiles directory that must exist
    for the entry to be used at all.
    """

    source: str
    dest: str
    requires: str | None = None


@dataclass
class Manifest:
    dotfiles_dir: Path
    repo: str | None = None
    links: list[LinkEntry] = field(default_factory=list)

    def resolve(self) -> list[LinkRequest]:
        """Turn entries into LinkRequests, dropping entries whose ``requires`` is absent."""
        dotfiles_dir = Path(self.dotfiles_dir).expanduser()
        requests = []
        for entry in self.links:
            if entry.requires and not (dotfiles_dir / entry.requires).exists():
                logger.info(
                    "Skipping %s: %s not present in %s",
                    entry.dest, entry.requires, dotfiles_dir,
                )
                continue
            source = Path(entry.source).expanduser()
            if not source.is_absolute():
                source = dotfiles_dir / source
            dest = Path(entry.dest).expanduser()
            if not dest.is_absolute():
                dest = Path.home() / dest
            requests.append(LinkRequest(source=source, dest=dest))
        return requests


def default_manifest(dotfiles_dir: Path | None = None) -> Manifest:
    """The well-known dotfile locations linked on every machine."""
    return Manifest(
        dotfiles_dir=Path(dotfiles_dir or DEFAULT_DOTFILES_DIR),
        repo=DEFAULT_REPO,
        links=[
            LinkEntry(".zshrc", "~/.zshrc"),
            LinkEntry("nvim", "~/.config/nvim"),
            LinkEntry("wezterm", "~/.config/wezterm"),
            LinkEntry(
                "joplin/userchrome.css",
                "~/.config/joplin-desktop/userchrome.css",
                requires="joplin",
            ),
            LinkEntry(
                "joplin/userstyle.css",
                "~/.config/joplin-desktop/userstyle.css",
                requires="joplin",
            ),
        ],
    )


def save_manifest(manifest: Manifest, path: Path) -> None:
    """Write a manifest as YAML.

    Format:
        dotfiles_dir: ~/dotfiles
        repo: https://github.com/you/dotfiles.git
        links:
        - source: .zshrc
          dest: ~/.zshrc
        - source: joplin/userstyle.css
          dest: ~/.config/joplin-desktop/userstyle.css
          requires: joplin
    """
    links = []
    for entry in manifest.links:
        item = {"source": entry.source, "dest": entry.dest}
        if entry.requires:
            item["requires"] = entry.requires
        links.append(item)

    data: dict = {"dotfiles_dir": str(manifest.dotfiles_dir)}
    if manifest.repo:
        data["repo"] = manifest.repo
    data["links"] = links

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> Manifest:
    """Load a manifest from a YAML file.

    Raises ManifestError if the file cannot be read or parsed, or if any
    entry lacks a source or dest.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ManifestError(f"{path}: expected a mapping at the top level")

    raw_links = raw.get("links") or []
    if not isinstance(raw_links, list):
        raise ManifestError(f"{path}: 'links' must be a list")

    links = []
    for i, item in enumerate(raw_links):
        if not isinstance(item, dict) or not item.get("source") or not item.get("dest"):
            raise ManifestError(f"{path}: links[{i}] needs both 'source' and 'dest'")
        requires = item.get("requires")
        links.append(
            LinkEntry(
                source=str(item["source"]),
                dest=str(item["dest"]),
                requires=str(requires) if requires else None,
            )
        )

    return Manifest(
        dotfiles_dir=Path(str(raw.get("dotfiles_dir") or DEFAULT_DOTFILES_DIR)),
        repo=str(raw["repo"]) if raw.get("repo") else None,
        links=links,
    )
