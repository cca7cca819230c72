"""
Patch entity for AutoPatch.
"""

from dataclasses import dataclass, asdict
from typing import Optional
from urllib.parse import urlparse

REMOTE_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class Patch:
    """
    A single patch declared for one package.

    The description is the stable key of the patch within its package's
    patch set; the url is either a remote URI or a local filesystem path.
    """

    package: str
    url: str
    description: str
    resolver: str = ""
    sha256: Optional[str] = None

    def __post_init__(self):
        if not self.package:
            raise ValueError("Patch package name must not be empty")
        if not self.url:
            raise ValueError(f"Patch url must not be empty ({self.package})")

    @property
    def is_remote(self) -> bool:
        return urlparse(self.url).scheme.lower() in REMOTE_SCHEMES

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["sha256"] is None:
            del data["sha256"]
        return data
