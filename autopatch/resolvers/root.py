"""
Patches declared by the root project.
"""

from autopatch.host import PackageEvent
from autopatch.patches.collection import PatchCollection
from autopatch.patches.manifest import parse_patch_map
from autopatch.resolvers.base import Resolver


class RootConfigResolver(Resolver):
    """Reads the "patches" key of the root package's extra data."""

    resolver_id = "root"

    def resolve(self, collection: PatchCollection, event: PackageEvent) -> None:
        raw = event.root.extra.get("patches")
        patch_map = parse_patch_map(raw, source=f"{event.root.name} extra.patches")
        self.add_patch_map(collection, patch_map)
