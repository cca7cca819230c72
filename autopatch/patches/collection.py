"""
Per-package index of resolved patches.
"""

from typing import Iterator

from autopatch.patches.models import Patch


class PatchCollection:
    """
    Ordered, deduplicated patches per package.

    Patches are keyed by (package, description). Adding a patch under a key
    that already exists replaces the stored patch in place, so the last
    writer wins and application order stays the order in which
    descriptions were first seen.
    """

    def __init__(self):
        self._patches: dict[str, dict[str, Patch]] = {}

    def add_patch(self, patch: Patch) -> None:
        self._patches.setdefault(patch.package, {})[patch.description] = patch

    def get_patches_for_package(self, package: str) -> list[Patch]:
        return list(self._patches.get(package, {}).values())

    def packages(self) -> list[str]:
        return [name for name, patches in self._patches.items() if patches]

    def applied_map(self, package: str) -> dict[str, str]:
        """Description -> url for a package, the shape stored as patches_applied."""
        return {
            patch.description: patch.url
            for patch in self.get_patches_for_package(package)
        }

    def to_dict(self) -> dict[str, list[dict]]:
        return {
            package: [patch.to_dict() for patch in self.get_patches_for_package(package)]
            for package in self.packages()
        }

    def __contains__(self, package: str) -> bool:
        return bool(self._patches.get(package))

    def __iter__(self) -> Iterator[Patch]:
        for patches in self._patches.values():
            yield from patches.values()

    def __len__(self) -> int:
        return sum(len(patches) for patches in self._patches.values())
