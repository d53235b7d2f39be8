from __future__ import annotations

import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from ash_aether.models.content import ShopListing

CONTENT_DIR = Path(__file__).parent / "data"

CATEGORIES: tuple[str, ...] = (
    "items",
    "enemies",
    "loot_tables",
    "quests",
    "dialogues",
    "perks",
    "recipes",
    "regions",
)


def load_toml(filepath: Path) -> dict[str, Any]:
    with open(filepath, "rb") as f:
        return tomllib.load(f)


def load_raw_bundle(content_dir: Path | str | None = None) -> dict[str, list[Any]]:
    """Read ``<category>.toml`` for every category into an untyped bundle.

    Each file holds one ``[[<category>]]`` array. A missing file yields an
    empty list, so a partial content directory still validates.
    """
    directory = Path(content_dir) if content_dir is not None else CONTENT_DIR
    bundle: dict[str, list[Any]] = {}
    for category in CATEGORIES:
        path = directory / f"{category}.toml"
        if not path.exists():
            bundle[category] = []
            continue
        bundle[category] = load_toml(path).get(category, [])
    return bundle


@lru_cache(maxsize=1)
def load_default_content():
    """Validated default bundle, parsed once per process.

    Raises ValueError listing every problem if the shipped content is broken.
    """
    from ash_aether.content.validator import validate_content

    result = validate_content(load_raw_bundle())
    if not result.ok or result.parsed is None:
        raise ValueError("Default content is invalid:\n" + "\n".join(result.errors))
    return result.parsed


def load_shop_listings(content_dir: Path | str | None = None) -> list[ShopListing]:
    directory = Path(content_dir) if content_dir is not None else CONTENT_DIR
    path = directory / "shops.toml"
    if not path.exists():
        return []
    return [ShopListing.model_validate(row) for row in load_toml(path).get("listings", [])]
