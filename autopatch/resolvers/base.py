"""
Resolver interfaces.

A resolver inspects one provenance source (root config, dependency
metadata, an external file, ...) and adds the patches it finds to the
session's PatchCollection. Providers hand out extra resolvers at runtime.
"""

from abc import ABC, abstractmethod

from autopatch.host import PackageEvent
from autopatch.patches.collection import PatchCollection
from autopatch.patches.manifest import patches_from_map


class Resolver(ABC):
    """Base class for patch resolvers."""

    # Identity used by the disable-resolvers option
    resolver_id: str = ""

    @property
    def identity(self) -> str:
        return self.resolver_id or type(self).__name__

    def identities(self) -> tuple[str, ...]:
        """Every name this resolver can be disabled by."""
        cls = type(self)
        return (self.identity, cls.__name__, f"{cls.__module__}.{cls.__qualname__}")

    @abstractmethod
    def resolve(self, collection: PatchCollection, event: PackageEvent) -> None:
        """
        Add the patches found in this resolver's source to the collection.

        Finding nothing is not an error.

        Raises:
            ConfigurationError: If the source is malformed
        """
        pass

    def add_patch_map(self, collection: PatchCollection, patch_map: dict) -> int:
        """Add a normalized manifest to the collection, returns the patch count."""
        patches = patches_from_map(patch_map, resolver=self.identity)
        for patch in patches:
            collection.add_patch(patch)
        return len(patches)


class ResolverProvider(ABC):
    """Something that contributes resolvers, e.g. another plugin."""

    @abstractmethod
    def get_resolvers(self, event: PackageEvent) -> list[Resolver]:
        pass
