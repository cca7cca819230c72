"""
Patch payload retrieval for AutoPatch.

Remote patches are downloaded over HTTP(S), local ones are read from
disk relative to the project directory. Payloads are cached per url for
the session, verified against an optional sha256 checksum and checked
to actually be a diff before anything touches the install directory.
"""

import hashlib
from pathlib import Path
from typing import Optional

import requests
from unidiff import PatchSet, UnidiffParseError

from autopatch.errors import ApplicationError, FetchError
from autopatch.patches.models import Patch


class PatchFetcher:
    """Retrieves patch payloads."""

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache: dict[str, bytes] = {}

    def local_path(self, patch: Patch) -> Path:
        path = Path(patch.url)
        if not path.is_absolute():
            path = self.base_dir / path
        return path

    def _download(self, patch: Patch) -> bytes:
        try:
            response = self.session.get(patch.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Could not download {patch.url}: {e}", patch=patch)
        return response.content

    def _read(self, patch: Patch) -> bytes:
        path = self.local_path(patch)
        try:
            return path.read_bytes()
        except OSError as e:
            raise FetchError(f"Could not read {path}: {e}", patch=patch)

    def fetch(self, patch: Patch) -> bytes:
        """
        Get the payload for a patch.

        Args:
            patch: Patch to fetch

        Returns:
            Raw payload bytes

        Raises:
            FetchError: On network errors, missing files or checksum mismatch
        """
        payload = self._cache.get(patch.url)
        if payload is None:
            payload = self._download(patch) if patch.is_remote else self._read(patch)
            self._cache[patch.url] = payload

        if patch.sha256:
            digest = hashlib.sha256(payload).hexdigest()
            if digest != patch.sha256.lower():
                raise FetchError(
                    f"Checksum mismatch for {patch.url}: expected {patch.sha256}, got {digest}",
                    patch=patch,
                )

        return payload


def inspect_payload(payload: bytes, patch: Optional[Patch] = None) -> dict:
    """
    Parse a payload as a unified diff and summarize it.

    Returns:
        Dictionary with files_changed, additions, deletions and files

    Raises:
        ApplicationError: If the payload is not a diff with file changes
    """
    name = patch.description if patch else "payload"
    try:
        diff = PatchSet(payload.decode("utf-8", errors="replace"))
    except UnidiffParseError as e:
        raise ApplicationError(f"Patch '{name}' is not a valid diff: {e}", patch=patch)

    if len(diff) == 0:
        raise ApplicationError(f"Patch '{name}' contains no file changes", patch=patch)

    return {
        "files_changed": len(diff),
        "additions": sum(patched_file.added for patched_file in diff),
        "deletions": sum(patched_file.removed for patched_file in diff),
        "files": [patched_file.path for patched_file in diff],
    }
