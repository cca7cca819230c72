"""
Resolver registry for AutoPatch.

Holds the ordered list of resolvers for a session, plus any providers
that contribute resolvers at runtime. Providers are checked strictly:
a provider that returns anything other than a list of Resolver objects
fails the whole resolution step.
"""

from importlib.metadata import entry_points
from typing import Any, Optional

from rich.console import Console

from autopatch.config import DEFAULT_CONFIG, PatcherConfig
from autopatch.errors import ResolverError
from autopatch.host import PackageEvent
from autopatch.patches.collection import PatchCollection
from autopatch.resolvers.base import Resolver

console = Console()

# Entry point group other distributions use to register resolver providers
PROVIDER_GROUP = "autopatch.providers"


def _provider_name(provider: Any) -> str:
    return type(provider).__name__


class ResolverRegistry:
    """Ordered resolvers and providers for one session."""

    def __init__(
        self,
        config: Optional[PatcherConfig] = None,
        verbose: bool = False,
    ):
        self.config = config or DEFAULT_CONFIG
        self.verbose = verbose
        self.resolvers: list[Resolver] = []
        self.providers: list[tuple[str, Any]] = []

    def register(self, resolver: Resolver) -> None:
        if not isinstance(resolver, Resolver):
            raise ResolverError(
                f"{type(resolver).__name__} does not implement the Resolver interface"
            )
        self.resolvers.append(resolver)

    def register_provider(self, provider: Any, name: Optional[str] = None) -> None:
        name = name or _provider_name(provider)
        if not callable(getattr(provider, "get_resolvers", None)):
            raise ResolverError(
                f"Resolver provider {name} has no get_resolvers() method",
                provider=name,
            )
        self.providers.append((name, provider))

    def load_entry_points(self, group: str = PROVIDER_GROUP) -> int:
        """
        Register providers advertised by installed distributions.

        A class entry point is instantiated without arguments.

        Returns:
            Number of providers registered
        """
        count = 0
        for entry_point in entry_points(group=group):
            provider = entry_point.load()
            if isinstance(provider, type):
                provider = provider()
            self.register_provider(provider, name=entry_point.name)
            count += 1
        return count

    def _provided_resolvers(self, event: PackageEvent) -> list[Resolver]:
        resolvers = []
        for name, provider in self.providers:
            provided = provider.get_resolvers(event)

            if not isinstance(provided, (list, tuple)):
                raise ResolverError(
                    f"Resolver provider {name} must return a list, "
                    f"got {type(provided).__name__}",
                    provider=name,
                )

            for item in provided:
                if not isinstance(item, Resolver):
                    raise ResolverError(
                        f"Resolver provider {name} returned {type(item).__name__}, "
                        f"which does not implement the Resolver interface",
                        provider=name,
                    )
                resolvers.append(item)

        return resolvers

    def collect(self, event: PackageEvent) -> list[Resolver]:
        """All enabled resolvers in execution order."""
        enabled = []
        for resolver in self.resolvers + self._provided_resolvers(event):
            if self.config.is_resolver_disabled(*resolver.identities()):
                if self.verbose:
                    console.print(f"[dim]Resolver {resolver.identity} is disabled[/dim]")
                continue
            enabled.append(resolver)
        return enabled

    def resolve(self, collection: PatchCollection, event: PackageEvent) -> PatchCollection:
        """
        Run every enabled resolver against the collection.

        Raises:
            ConfigurationError: If a resolver's source is malformed
            ResolverError: If a provider misbehaves
        """
        for resolver in self.collect(event):
            before = len(collection)
            resolver.resolve(collection, event)
            if self.verbose:
                console.print(
                    f"[dim]Resolver {resolver.identity}: "
                    f"{len(collection) - before} new patch(es)[/dim]"
                )
        return collection
