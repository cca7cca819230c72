"""
Shared fixtures for AutoPatch tests.
"""

from pathlib import Path

import pytest

from autopatch.config import PatcherConfig
from autopatch.host import Package, Repository, RootPackage, VendorInstaller
from autopatch.patching.apply import PatchTool


def make_diff(path: str = "header.h", old: str = "old", new: str = "new") -> str:
    return (
        f"--- a/{path}\n"
        f"+++ b/{path}\n"
        "@@ -1 +1 @@\n"
        f"-{old}\n"
        f"+{new}\n"
    )


class FakeTool(PatchTool):
    """
    Records every (payload, level) attempt.

    accept decides whether an attempt succeeds; by default only -p1 does.
    """

    name = "fake"

    def __init__(self, accept=None):
        self.accept = accept or (lambda payload, level: level == "-p1")
        self.calls: list[tuple[str, str]] = []

    def apply(self, patch_file: Path, install_path: Path, level: str) -> bool:
        payload = Path(patch_file).read_text(encoding="utf-8")
        self.calls.append((payload, level))
        return self.accept(payload, level)

    @property
    def levels(self) -> list[str]:
        return [level for _, level in self.calls]


class Project:
    """A throwaway project directory with patches/ and vendor/."""

    def __init__(self, root: Path):
        self.root = root
        self.patches_dir = root / "patches"
        self.vendor_dir = root / "vendor"
        self.patches_dir.mkdir()
        self.vendor_dir.mkdir()

    def write_patch(self, name: str, content: str = None) -> str:
        (self.patches_dir / name).write_text(content or make_diff(), encoding="utf-8")
        return f"patches/{name}"

    def install(self, name: str, **extra) -> Package:
        (self.vendor_dir / name).mkdir(parents=True, exist_ok=True)
        (self.vendor_dir / name / "header.h").write_text("old\n", encoding="utf-8")
        return Package(name=name, version="1.0.0", extra=dict(extra))

    def root_package(self, **extra) -> RootPackage:
        return RootPackage(name="acme/project", extra=dict(extra), path=self.root)

    @property
    def installer(self) -> VendorInstaller:
        return VendorInstaller(self.vendor_dir)


@pytest.fixture
def project(tmp_path):
    return Project(tmp_path)


@pytest.fixture
def fake_tool():
    return FakeTool()


@pytest.fixture
def continue_config():
    return PatcherConfig(exit_on_patch_failure=False)


@pytest.fixture
def repository():
    return Repository()
