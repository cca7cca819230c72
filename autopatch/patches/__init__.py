"""
Patch data for AutoPatch.

Handles:
- The Patch entity
- The per-package PatchCollection
- Manifest parsing and two-level merging
"""

from autopatch.patches.models import Patch
from autopatch.patches.collection import PatchCollection
from autopatch.patches.manifest import merge_patch_maps, parse_patch_map, patches_from_map

__all__ = [
    "Patch",
    "PatchCollection",
    "merge_patch_maps",
    "parse_patch_map",
    "patches_from_map",
]
