"""
Patches declared by locked dependencies.

Every package in the locked repository may carry its own "patches" extra,
targeting itself or any other package. All of them are merged, in
repository order, with the two-level merge: later declarations override
the same description for the same target, other targets are untouched.

The root project can drop patches a dependency declares through
"patches-ignore":

    {"patches-ignore": {"vendor/dep": {"vendor/target": {"description": "url"}}}}

An ignored entry matches on either its description or its url.
"""

from autopatch.errors import ConfigurationError
from autopatch.host import PackageEvent
from autopatch.patches.collection import PatchCollection
from autopatch.patches.manifest import merge_patch_maps, parse_patch_map
from autopatch.resolvers.base import Resolver


def _parse_ignores(raw, source: str) -> dict[str, dict[str, dict]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{source} must be an object keyed by dependency name")
    return {
        dependency: parse_patch_map(targets, source=f"{source} ({dependency})")
        for dependency, targets in raw.items()
    }


def apply_ignores(patch_map: dict[str, dict[str, dict]], ignored: dict[str, dict[str, dict]]) -> dict:
    """Return patch_map without the entries listed in ignored (pure)."""
    filtered = {}
    for target, entries in patch_map.items():
        skip = ignored.get(target, {})
        skip_urls = {leaf["url"] for leaf in skip.values()}
        filtered[target] = {
            description: leaf
            for description, leaf in entries.items()
            if description not in skip and leaf["url"] not in skip_urls
        }
    return filtered


class DependencyResolver(Resolver):
    """Reads the "patches" extra of every locked package."""

    resolver_id = "dependencies"

    def resolve(self, collection: PatchCollection, event: PackageEvent) -> None:
        if event.repository is None:
            return

        ignores = _parse_ignores(
            event.root.extra.get("patches-ignore"),
            source=f"{event.root.name} extra.patches-ignore",
        )

        merged: dict = {}
        for package in event.repository:
            raw = package.extra.get("patches")
            if not raw:
                continue
            patch_map = parse_patch_map(raw, source=f"{package.name} extra.patches")
            if package.name in ignores:
                patch_map = apply_ignores(patch_map, ignores[package.name])
            merged = merge_patch_maps(merged, patch_map)

        self.add_patch_map(collection, merged)
