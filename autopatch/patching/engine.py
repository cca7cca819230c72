"""
Patch Application Engine for AutoPatch.

Runs once per package, right after the host placed its files on disk:
fetch every patch, apply it at the first strip-level that works, and
record what was applied in the package's patches_applied metadata.
"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich.console import Console

from autopatch.config import DEFAULT_CONFIG, PatcherConfig
from autopatch.errors import ApplicationError, FetchError
from autopatch.events import EventDispatcher, PatchEvent, POST_PATCH_APPLY, PRE_PATCH_APPLY
from autopatch.host import Package
from autopatch.patches.models import Patch
from autopatch.patching.apply import PatchTool, apply_patch, get_patch_tool
from autopatch.patching.fetch import PatchFetcher, inspect_payload
from autopatch.patching.report import write_report

console = Console()

# Temporary patch file name
PATCH_FILENAME = "autopatch.patch"


@dataclass
class PackageResult:
    """Outcome of patching one package."""

    package: str
    applied: dict[str, str] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed


class PatchApplier:
    """
    Applies a package's patches in order.

    With exit_on_patch_failure the first fetch or application error is
    re-raised and nothing else is attempted; patches applied before it
    are still recorded so the package shows up as drifted next time.
    Otherwise the failing patch is skipped and left out of the recorded
    metadata.
    """

    def __init__(
        self,
        config: Optional[PatcherConfig] = None,
        fetcher: Optional[PatchFetcher] = None,
        tool: Optional[PatchTool] = None,
        dispatcher: Optional[EventDispatcher] = None,
        verbose: bool = False,
    ):
        self.config = config or DEFAULT_CONFIG
        self.fetcher = fetcher or PatchFetcher(timeout=self.config.http_timeout)
        self.tool = tool or get_patch_tool(self.config.patch_tool, verbose=verbose)
        self.dispatcher = dispatcher or EventDispatcher()
        self.verbose = verbose

    def _apply_one(self, patch: Patch, install_path: Path) -> str:
        payload = self.fetcher.fetch(patch)
        stats = inspect_payload(payload, patch)

        if self.verbose:
            console.print(
                f"[dim]{patch.url}: {stats['files_changed']} file(s), "
                f"+{stats['additions']} -{stats['deletions']}[/dim]"
            )

        with tempfile.TemporaryDirectory(prefix="autopatch-") as tmp:
            patch_file = Path(tmp) / PATCH_FILENAME
            patch_file.write_bytes(payload)
            return apply_patch(
                patch_file,
                install_path,
                self.config.patch_levels,
                self.tool,
                patch=patch,
                verbose=self.verbose,
            )

    def apply(self, package: Package, patches: list[Patch], install_path: Path) -> PackageResult:
        """
        Apply patches to an installed package.

        Args:
            package: Package whose files were just installed
            patches: Patches for the package, in application order
            install_path: Directory holding the package's files

        Returns:
            PackageResult with applied and failed patches

        Raises:
            FetchError, ApplicationError: On the first failure when
                exit_on_patch_failure is set
        """
        result = PackageResult(package=package.name)

        if not patches:
            if self.verbose:
                console.print(f"[dim]No patches found for {package.name}[/dim]")
            return result

        console.print(f"[bold blue]Applying patches for {package.name}[/bold blue]")

        for patch in patches:
            console.print(f"  {patch.url} ({patch.description})")
            self.dispatcher.dispatch(PatchEvent(PRE_PATCH_APPLY, package, patch))

            try:
                self._apply_one(patch, Path(install_path))
            except (FetchError, ApplicationError) as e:
                console.print(f"  [red]Could not apply patch: {e}[/red]")
                result.failed[patch.description] = str(e)
                if self.config.exit_on_patch_failure:
                    if result.applied:
                        self._record(package, Path(install_path), result.applied)
                        console.print(
                            f"  [yellow]{package.name} is partially patched, reinstall it before retrying[/yellow]"
                        )
                    raise
                console.print("  [yellow]Skipping (exit-on-patch-failure is off)[/yellow]")
                continue

            self.dispatcher.dispatch(PatchEvent(POST_PATCH_APPLY, package, patch))
            result.applied[patch.description] = patch.url

        self._record(package, Path(install_path), result.applied)
        return result

    def _record(self, package: Package, install_path: Path, applied: dict[str, str]) -> None:
        package.set_applied_patches(applied)
        if applied:
            write_report(install_path, applied)
