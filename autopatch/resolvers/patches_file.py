"""
Patches declared in an external manifest file.
"""

import json
from pathlib import Path
from typing import Optional

from autopatch.errors import ConfigurationError
from autopatch.host import PackageEvent
from autopatch.patches.collection import PatchCollection
from autopatch.patches.manifest import parse_patch_map
from autopatch.resolvers.base import Resolver


def load_patches_file(path: Path) -> dict[str, dict[str, dict]]:
    """
    Load a JSON patch manifest.

    The file holds either {"patches": {...}} or the package map itself.

    Raises:
        ConfigurationError: If the file is missing, not JSON, or malformed
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(f"Patches file not found: {path}")
    except OSError as e:
        raise ConfigurationError(f"Could not read patches file {path}: {e}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Patches file {path} is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Patches file {path} must contain a JSON object")

    if "patches" in data:
        data = data["patches"]

    return parse_patch_map(data, source=str(path))


class PatchesFileResolver(Resolver):
    """Reads the file named by the patches-file option, if any."""

    resolver_id = "patches-file"

    def __init__(self, patches_file: Optional[str] = None):
        self.patches_file = patches_file

    def resolve(self, collection: PatchCollection, event: PackageEvent) -> None:
        if not self.patches_file:
            return

        path = Path(self.patches_file)
        if not path.is_absolute():
            path = event.root.path / path

        self.add_patch_map(collection, load_patches_file(path))
