"""
Patch manifest parsing and merging.

A manifest maps package names to the patches declared for them. Two
spellings are accepted per package:

    {"vendor/pkg": {"fix header": "patches/fix.patch"}}
    {"vendor/pkg": [{"description": "fix header", "url": "patches/fix.patch"}]}

A leaf may also be an object {"url": ..., "sha256": ...}. Parsed manifests
are normalized to package -> description -> {"url", "sha256"?} so they can
be merged without caring which spelling each source used.
"""

from typing import Any, Optional

from autopatch.errors import ConfigurationError
from autopatch.patches.models import Patch


def _parse_leaf(value: Any, where: str) -> dict:
    if isinstance(value, str):
        if not value:
            raise ConfigurationError(f"Empty patch url in {where}")
        return {"url": value}

    if isinstance(value, dict):
        url = value.get("url")
        if not isinstance(url, str) or not url:
            raise ConfigurationError(f"Patch entry without a url in {where}")
        leaf = {"url": url}
        sha256 = value.get("sha256")
        if sha256 is not None:
            if not isinstance(sha256, str):
                raise ConfigurationError(f"Invalid sha256 in {where}")
            leaf["sha256"] = sha256.lower()
        return leaf

    raise ConfigurationError(
        f"Patch entry must be a url or an object in {where}, got {type(value).__name__}"
    )


def parse_patch_map(raw: Any, source: str = "manifest") -> dict[str, dict[str, dict]]:
    """
    Normalize a raw package -> patches mapping.

    Args:
        raw: Decoded manifest data (None is treated as empty)
        source: Human-readable origin, used in error messages

    Returns:
        Mapping package -> description -> leaf dict

    Raises:
        ConfigurationError: If the data does not have the manifest shape
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Patches in {source} must be an object keyed by package name"
        )

    parsed: dict[str, dict[str, dict]] = {}
    for package, entries in raw.items():
        if not isinstance(package, str) or not package:
            raise ConfigurationError(f"Patches in {source} must be keyed by a package name, got {package!r}")
        where = f"{source} ({package})"
        patches: dict[str, dict] = {}

        if isinstance(entries, dict):
            for description, value in entries.items():
                patches[description] = _parse_leaf(value, where)
        elif isinstance(entries, list):
            for entry in entries:
                if not isinstance(entry, dict) or not entry.get("description"):
                    raise ConfigurationError(f"Patch entry without a description in {where}")
                patches[entry["description"]] = _parse_leaf(entry, where)
        else:
            raise ConfigurationError(f"Patches for a package must be an object or a list in {where}")

        parsed[package] = patches

    return parsed


def merge_patch_maps(*maps: Optional[dict]) -> dict[str, dict[str, Any]]:
    """
    Two-level merge of package -> description -> value maps.

    Packages from every source are kept; for the same package the inner
    maps are merged and a later source overrides an earlier one on the
    same description. Inputs are never mutated.
    """
    merged: dict[str, dict[str, Any]] = {}
    for patch_map in maps:
        if not patch_map:
            continue
        for package, entries in patch_map.items():
            target = merged.setdefault(package, {})
            target.update(entries)
    return merged


def patches_from_map(patch_map: dict[str, dict[str, dict]], resolver: str = "") -> list[Patch]:
    """Build Patch entities from a normalized manifest."""
    patches = []
    for package, entries in patch_map.items():
        for description, leaf in entries.items():
            patches.append(Patch(
                package=package,
                url=leaf["url"],
                description=description,
                resolver=resolver,
                sha256=leaf.get("sha256"),
            ))
    return patches
