"""
Patch resolvers for AutoPatch.

Handles:
- The Resolver and ResolverProvider interfaces
- Root project, dependency and external-file resolvers
- Provider validation and the resolver registry
"""

from autopatch.resolvers.base import Resolver, ResolverProvider
from autopatch.resolvers.root import RootConfigResolver
from autopatch.resolvers.dependencies import DependencyResolver
from autopatch.resolvers.patches_file import PatchesFileResolver, load_patches_file
from autopatch.resolvers.registry import ResolverRegistry, PROVIDER_GROUP

__all__ = [
    "Resolver",
    "ResolverProvider",
    "RootConfigResolver",
    "DependencyResolver",
    "PatchesFileResolver",
    "load_patches_file",
    "ResolverRegistry",
    "PROVIDER_GROUP",
]
