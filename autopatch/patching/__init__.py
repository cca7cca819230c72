"""
Patch Application for AutoPatch.

Handles:
- Fetching patch payloads (local files and HTTP)
- Applying diffs with GNU patch or git apply across strip-levels
- Recording applied patches on the package and in PATCHES.txt
"""

from autopatch.patching.apply import (
    GitApplyTool,
    GnuPatchTool,
    PatchTool,
    apply_patch,
    get_patch_tool,
)
from autopatch.patching.engine import PackageResult, PatchApplier
from autopatch.patching.fetch import PatchFetcher, inspect_payload
from autopatch.patching.report import read_report, write_report

__all__ = [
    "GitApplyTool",
    "GnuPatchTool",
    "PatchTool",
    "apply_patch",
    "get_patch_tool",
    "PackageResult",
    "PatchApplier",
    "PatchFetcher",
    "inspect_payload",
    "read_report",
    "write_report",
]
