"""Mod manifest, catalog entry and the text published alongside them."""

import hashlib
import json
from typing import List, Optional

from pydantic import BaseModel, Field

GLOBAL_PACKAGE_VERSION = "global"


class ModManifest(BaseModel):
    """``mod.json`` as shipped inside a mod package."""

    name: str = Field(..., description="Display name")
    id: str = Field(..., description="Mod identifier, e.g. com.example.mod")
    description: Optional[str] = Field(default=None, description="Free-form description")
    version: str = Field(..., description="Mod version")
    modloader: str = Field(default="QuestLoader", description="Loader identifier")
    author: str = Field(default="", description="Author name")
    porter: Optional[str] = Field(default=None, description="Porter name, if the mod was ported")
    cover_image: Optional[str] = Field(default=None, alias="coverImage", description="Cover image link")
    package_id: Optional[str] = Field(default=None, alias="packageId", description="Game package id")
    package_version: Optional[str] = Field(default=None, alias="packageVersion", description="Game version")

    model_config = {"extra": "ignore", "populate_by_name": True}

    @property
    def game_version(self) -> str:
        return self.package_version or GLOBAL_PACKAGE_VERSION

    @property
    def display_author(self) -> str:
        if self.porter:
            return f"{self.porter}, {self.author}"
        return self.author


class ModEntry(BaseModel):
    """Catalog entry written to ``mods/{game version}/{id}-{version}.json``."""

    name: str
    description: Optional[str] = None
    id: str
    version: str
    author: str
    author_icon: Optional[str] = Field(default=None, alias="authorIcon")
    modloader: str
    download: str
    source: Optional[str] = None
    cover: Optional[str] = None
    funding: List[str] = Field(default_factory=list)
    website: Optional[str] = None
    hash: Optional[str] = None

    model_config = {"extra": "forbid", "populate_by_name": True}

    def to_json_bytes(self) -> bytes:
        """Stable JSON document (camelCase keys, 2-space indent, trailing
        newline)."""
        data = self.model_dump(by_alias=True)
        return (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def _is_link(value: str | None) -> bool:
    return bool(value) and value.startswith(("http://", "https://"))


def content_hash(data: bytes) -> str:
    """SHA-1 of the package bytes, as the catalog expects."""
    return hashlib.sha1(data).hexdigest()


def build_entry(
    manifest: ModManifest,
    download_url: str,
    *,
    author_icon: str | None = None,
    source_url: str | None = None,
    funding: List[str] | None = None,
    website: str | None = None,
    package_bytes: bytes | None = None,
) -> ModEntry:
    """Build the catalog entry for ``manifest`` published from
    ``download_url``."""
    return ModEntry(
        name=manifest.name,
        description=manifest.description,
        id=manifest.id,
        version=manifest.version,
        author=manifest.display_author,
        author_icon=author_icon,
        modloader=manifest.modloader,
        download=download_url,
        source=source_url,
        cover=manifest.cover_image if _is_link(manifest.cover_image) else None,
        funding=list(funding or []),
        website=website or source_url,
        hash=content_hash(package_bytes) if package_bytes is not None else None,
    )


def branch_name(manifest: ModManifest) -> str:
    """Integration branch: ``{id}-{version}-{game version}``."""
    return f"{manifest.id}-{manifest.version}-{manifest.game_version}"


def entry_path(manifest: ModManifest, mods_dir: str = "mods") -> str:
    """Repository path of the catalog entry."""
    return f"{mods_dir.strip('/')}/{manifest.game_version}/{manifest.id}-{manifest.version}.json"


def title(manifest: ModManifest) -> str:
    return f"{manifest.name} v{manifest.version}"


def summary_pairs(manifest: ModManifest) -> List[tuple[str, str]]:
    return [
        ("Id", manifest.id),
        ("Author", manifest.display_author),
        ("Mod loader", manifest.modloader),
        ("Game version", manifest.game_version),
    ]


def commit_message(manifest: ModManifest) -> str:
    """Title line, blank line, key/value block, optional ruled description."""
    lines = [title(manifest), ""]
    lines.extend(f"{key}: {value}" for key, value in summary_pairs(manifest))
    if manifest.description:
        lines.extend(["", "---", manifest.description.strip(), "---"])
    return "\n".join(lines)


def pull_request_body(manifest: ModManifest) -> str:
    """Render the pull request description as markdown."""
    lines = [f"**{key}:** {value}" for key, value in summary_pairs(manifest)]
    if manifest.description:
        lines.extend(["", manifest.description.strip()])
    return "\n".join(lines).strip() + "\n"


def update_comment(manifest: ModManifest, path: str) -> str:
    """Comment posted on an already open pull request after a rerun."""
    return f"Updated the mod manifest for {title(manifest)} at `{path}`."
