"""
Patch Drift Detection for AutoPatch.

Before anything is installed, every locked package is checked against
the patches it should now carry. A package is dirty when its recorded
patches_applied metadata differs from the freshly resolved set:
1. unpatched -> patched (new patches were declared)
2. patched -> unpatched (all patches were removed)
3. patched -> patched, but a different description -> url mapping

Dirty packages are removed from the repository so the host reinstalls
them from scratch; patches are never applied on top of an already
patched tree.
"""

from dataclasses import dataclass
from typing import Literal, Optional

from rich.console import Console

from autopatch.host import Repository
from autopatch.patches.collection import PatchCollection

console = Console()

DriftKind = Literal["newly-patched", "unpatched", "changed"]


@dataclass
class DriftDecision:
    """A package whose installed patches no longer match."""

    package: str
    kind: DriftKind
    previous: dict[str, str]
    resolved: dict[str, str]


def classify_drift(
    previous: Optional[dict[str, str]],
    resolved: Optional[dict[str, str]],
) -> Optional[DriftKind]:
    """
    Compare recorded and resolved patch sets.

    Args:
        previous: description -> url recorded at install time (None if absent)
        resolved: description -> url resolved for this session

    Returns:
        The kind of drift, or None if the package is clean
    """
    previous = previous or {}
    resolved = resolved or {}

    if previous == resolved:
        return None
    if not previous:
        return "newly-patched"
    if not resolved:
        return "unpatched"
    return "changed"


def detect_drift(
    collection: PatchCollection,
    repository: Optional[Repository],
    uninstall: bool = True,
    verbose: bool = False,
) -> list[DriftDecision]:
    """
    Find locked packages whose patch set changed.

    Args:
        collection: Patches resolved against the new lock state
        repository: Currently installed packages (None on a first install)
        uninstall: Remove dirty packages from the repository
        verbose: Whether to print progress

    Returns:
        One DriftDecision per dirty package
    """
    if repository is None:
        if verbose:
            console.print("[dim]No installed packages to check for patch changes[/dim]")
        return []

    decisions = []

    for package in repository:
        previous = package.applied_patches
        resolved = collection.applied_map(package.name)
        kind = classify_drift(previous, resolved)

        if kind is None:
            continue

        decisions.append(DriftDecision(
            package=package.name,
            kind=kind,
            previous=previous,
            resolved=resolved,
        ))

        if uninstall:
            repository.remove_package(package)

        if verbose:
            console.print(
                f"[yellow]Patches for {package.name} changed ({kind}), "
                f"package will be reinstalled[/yellow]"
            )

    return decisions
