"""
AutoPatch

Patch resolution, drift detection and application for package installs.
"""

__version__ = "0.1.0"

from autopatch.patches import Patch, PatchCollection
from autopatch.orchestrator import Patcher

__all__ = ["Patch", "PatchCollection", "Patcher", "__version__"]
