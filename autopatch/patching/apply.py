"""
Patch Application for AutoPatch.

Applies unified diffs to an install directory with an external tool,
trying each configured strip-level until one works. A failed attempt
must leave the tree untouched, so every tool checks before it writes.
"""

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from autopatch.errors import ApplicationError
from autopatch.patches.models import Patch

console = Console()


class PatchTool(ABC):
    """One external diff-application tool."""

    name: str = ""

    @abstractmethod
    def apply(self, patch_file: Path, install_path: Path, level: str) -> bool:
        """
        Apply patch_file inside install_path at the given strip-level.

        Returns:
            True if the patch applied; False leaves the tree unchanged

        Raises:
            ApplicationError: If the tool itself is unavailable
        """
        pass


class GnuPatchTool(PatchTool):
    """GNU patch, with a dry run before the real invocation."""

    name = "patch"

    def __init__(self, executable: str = "patch", verbose: bool = False):
        self.executable = executable
        self.verbose = verbose

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                stdin=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            raise ApplicationError(f"'{self.executable}' executable not found")

    def apply(self, patch_file: Path, install_path: Path, level: str) -> bool:
        args = [
            self.executable,
            level,
            "--forward",
            "--batch",
            "--no-backup-if-mismatch",
            "-d", str(install_path),
            "-i", str(patch_file),
        ]

        # Check if patch applies cleanly (forward dry-run)
        result = self._run(args + ["--dry-run"])
        if result.returncode != 0:
            if self.verbose:
                console.print(f"[dim]patch {level} does not apply: {result.stdout.strip()}[/dim]")
            return False

        # Apply for real
        result = self._run(args)
        if result.returncode != 0:
            console.print(f"[red]patch {level} failed after a clean dry run:[/red]")
            console.print(f"[dim]{result.stderr or result.stdout}[/dim]")
            return False

        return True


class GitApplyTool(PatchTool):
    """git apply, run through GitPython."""

    name = "git"

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def apply(self, patch_file: Path, install_path: Path, level: str) -> bool:
        from git import Git
        from git.exc import GitCommandError, GitCommandNotFound

        git = Git(str(install_path))
        # Keep git from treating an enclosing repository's root as the patch root
        git.update_environment(GIT_CEILING_DIRECTORIES=str(Path(install_path).resolve().parent))

        try:
            git.apply("--check", level, str(patch_file))
            git.apply(level, str(patch_file))
        except GitCommandNotFound:
            raise ApplicationError("'git' executable not found")
        except GitCommandError as e:
            if self.verbose:
                console.print(f"[dim]git apply {level} does not apply: {e.stderr.strip()}[/dim]")
            return False

        return True


def get_patch_tool(name: str, verbose: bool = False) -> PatchTool:
    """Build the tool selected by the patch-tool option."""
    if name == GnuPatchTool.name:
        return GnuPatchTool(verbose=verbose)
    if name == GitApplyTool.name:
        return GitApplyTool(verbose=verbose)
    raise ApplicationError(f"Unknown patch tool: {name}")


def apply_patch(
    patch_file: Path,
    install_path: Path,
    levels: Sequence[str],
    tool: PatchTool,
    patch: Optional[Patch] = None,
    verbose: bool = False,
) -> str:
    """
    Apply a patch file, trying each strip-level in order.

    Args:
        patch_file: File holding the diff
        install_path: Directory the diff applies to
        levels: Strip-level arguments, e.g. ("-p1", "-p0")
        tool: External tool to invoke
        patch: Patch being applied, for error reporting
        verbose: Whether to print progress

    Returns:
        The strip-level that worked

    Raises:
        ApplicationError: If no strip-level worked
    """
    for level in levels:
        if tool.apply(patch_file, install_path, level):
            if verbose:
                console.print(f"[dim]Applied with {tool.name} {level}[/dim]")
            return level

    name = patch.description if patch else patch_file.name
    raise ApplicationError(
        f"Cannot apply patch '{name}' (tried {', '.join(levels)})",
        patch=patch,
    )
