"""
Patch pipeline orchestration for AutoPatch.

The embedding package manager drives three stages:
- check_patches: before install, force reinstall of packages whose
  patches changed
- resolve_patches: on the first install event, run every resolver once
- post_install: after each package's files are on disk, apply its patches

Resolution happens at most once per session; later stages read the
same PatchCollection.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console

from autopatch.config import PatcherConfig, load_config
from autopatch.drift import DriftDecision, detect_drift
from autopatch.events import EventDispatcher
from autopatch.host import InstallationManager, PackageEvent, Repository, RootPackage, VendorInstaller
from autopatch.patches.collection import PatchCollection
from autopatch.patching.apply import PatchTool
from autopatch.patching.engine import PackageResult, PatchApplier
from autopatch.patching.fetch import PatchFetcher
from autopatch.resolvers.dependencies import DependencyResolver
from autopatch.resolvers.patches_file import PatchesFileResolver
from autopatch.resolvers.registry import ResolverRegistry
from autopatch.resolvers.root import RootConfigResolver

console = Console()


def default_registry(config: PatcherConfig, verbose: bool = False) -> ResolverRegistry:
    """Registry with the built-in resolvers, in execution order."""
    registry = ResolverRegistry(config, verbose=verbose)
    registry.register(RootConfigResolver())
    registry.register(DependencyResolver())
    registry.register(PatchesFileResolver(config.patches_file))
    registry.load_entry_points()
    return registry


class Patcher:
    """Owns one install session's configuration, patches and engine."""

    def __init__(
        self,
        root: RootPackage,
        config: Optional[PatcherConfig] = None,
        installer: Optional[InstallationManager] = None,
        registry: Optional[ResolverRegistry] = None,
        dispatcher: Optional[EventDispatcher] = None,
        fetcher: Optional[PatchFetcher] = None,
        tool: Optional[PatchTool] = None,
        verbose: bool = False,
    ):
        self.root = root
        self.config = config or load_config(root.extra)
        self.installer = installer or VendorInstaller(root.path / "vendor")
        self.registry = registry or default_registry(self.config, verbose=verbose)
        self.dispatcher = dispatcher or EventDispatcher()
        self.verbose = verbose

        self.collection = PatchCollection()
        self.resolved = False

        self.applier = PatchApplier(
            config=self.config,
            fetcher=fetcher or PatchFetcher(base_dir=root.path, timeout=self.config.http_timeout),
            tool=tool,
            dispatcher=self.dispatcher,
            verbose=verbose,
        )

    @property
    def enabled(self) -> bool:
        return not self.config.disable_patching

    def resolve_patches(self, event: PackageEvent) -> PatchCollection:
        """
        Run all enabled resolvers, once per session.

        Raises:
            ConfigurationError, ResolverError: If the patch set cannot be trusted
        """
        if not self.enabled or self.resolved:
            return self.collection

        if self.verbose:
            console.print("[bold blue]Gathering patches...[/bold blue]")

        self.registry.resolve(self.collection, event)
        self.resolved = True

        if self.verbose:
            console.print(
                f"[dim]Resolved {len(self.collection)} patch(es) "
                f"for {len(self.collection.packages())} package(s)[/dim]"
            )

        return self.collection

    def check_patches(
        self,
        repository: Optional[Repository],
        lock: Optional[Repository] = None,
    ) -> list[DriftDecision]:
        """
        Pre-install stage: uninstall packages whose patch set changed.

        Patches are resolved against the lock about to be installed, so a
        dependency version that starts declaring patches for another
        package marks that package dirty.

        Args:
            repository: Packages as currently installed, None if nothing
                was installed before
            lock: Packages the host is about to install (defaults to
                repository when the lock is unchanged)

        Returns:
            Drift decisions for the packages that were removed
        """
        if not self.enabled:
            return []

        if repository is None:
            if self.verbose:
                console.print("[dim]No lock state, skipping patch change detection[/dim]")
            return []

        target = lock if lock is not None else repository
        self.resolve_patches(PackageEvent("check", self.root, target))
        return detect_drift(self.collection, repository, uninstall=True, verbose=self.verbose)

    def post_install(self, event: PackageEvent) -> Optional[PackageResult]:
        """
        Post-install stage: apply the installed package's patches.

        Returns:
            PackageResult, or None when patching is disabled

        Raises:
            FetchError, ApplicationError: When exit-on-patch-failure aborts the run
        """
        if not self.enabled or event.package is None:
            return None

        self.resolve_patches(event)

        package = event.package
        patches = self.collection.get_patches_for_package(package.name)
        if not patches:
            if self.verbose:
                console.print(f"[dim]No patches found for {package.name}[/dim]")
            return PackageResult(package=package.name)

        install_path = Path(self.installer.get_install_path(package))
        return self.applier.apply(package, patches, install_path)
