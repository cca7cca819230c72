"""
Host package manager interfaces.

AutoPatch does not install anything itself. The host manager hands it
packages, the locked repository and an installation manager that knows
where each package lives on disk. The JSON-backed implementations here
are what the command line tool uses.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Protocol

from autopatch.errors import ConfigurationError

# Extra metadata key holding description -> url of successfully applied patches
APPLIED_KEY = "patches_applied"


@dataclass
class Package:
    """An installed (or about to be installed) package."""

    name: str
    version: str = ""
    extra: dict = field(default_factory=dict)

    @property
    def applied_patches(self) -> dict[str, str]:
        return dict(self.extra.get(APPLIED_KEY) or {})

    def set_applied_patches(self, applied: dict[str, str]) -> None:
        self.extra[APPLIED_KEY] = dict(applied)

    def to_dict(self) -> dict:
        return {"name": self.name, "version": self.version, "extra": self.extra}

    @classmethod
    def from_dict(cls, data: dict) -> "Package":
        if not isinstance(data, dict) or not data.get("name"):
            raise ConfigurationError("Package entries need at least a name")
        return cls(
            name=data["name"],
            version=str(data.get("version", "")),
            extra=dict(data.get("extra") or {}),
        )


@dataclass
class RootPackage:
    """The project being installed; its directory anchors relative patch paths."""

    name: str
    extra: dict = field(default_factory=dict)
    path: Path = field(default_factory=Path.cwd)


class Repository:
    """Ordered set of locked packages."""

    def __init__(self, packages: Optional[list[Package]] = None):
        self.packages: list[Package] = list(packages or [])

    def find_package(self, name: str) -> Optional[Package]:
        for package in self.packages:
            if package.name == name:
                return package
        return None

    def remove_package(self, package: Package) -> None:
        self.packages = [p for p in self.packages if p.name != package.name]

    def __iter__(self) -> Iterator[Package]:
        return iter(list(self.packages))

    def __len__(self) -> int:
        return len(self.packages)


class JsonRepository(Repository):
    """Repository persisted as {"packages": [...]} in a JSON file."""

    def __init__(self, path: Path, packages: Optional[list[Package]] = None):
        super().__init__(packages)
        self.path = Path(path)

    @classmethod
    def load(cls, path: Path) -> "JsonRepository":
        path = Path(path)
        if not path.exists():
            return cls(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}")
        if not isinstance(data, dict) or not isinstance(data.get("packages", []), list):
            raise ConfigurationError(f"{path} must contain a 'packages' list")
        return cls(path, [Package.from_dict(item) for item in data.get("packages", [])])

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"packages": [package.to_dict() for package in self.packages]}
        self.path.write_text(json.dumps(data, indent=4) + "\n", encoding="utf-8")


def load_root_package(path: Path) -> RootPackage:
    """Read a JSON project file ({"name": ..., "extra": {...}})."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(f"Project file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")

    extra = data.get("extra") or {}
    if not isinstance(extra, dict):
        raise ConfigurationError(f"'extra' in {path} must be an object")

    return RootPackage(
        name=data.get("name", path.parent.resolve().name),
        extra=extra,
        path=path.parent.resolve(),
    )


@dataclass
class PackageEvent:
    """
    Context for one pipeline stage.

    operation is "install", "update" or "check" (pre-install drift check).
    package is the package being installed, when there is one.
    """

    operation: str
    root: RootPackage
    repository: Optional[Repository] = None
    package: Optional[Package] = None


class InstallationManager(Protocol):
    def get_install_path(self, package: Package) -> Path:
        ...


class VendorInstaller:
    """Packages live in <vendor_dir>/<package name>."""

    def __init__(self, vendor_dir: Path):
        self.vendor_dir = Path(vendor_dir)

    def get_install_path(self, package: Package) -> Path:
        return self.vendor_dir / package.name
