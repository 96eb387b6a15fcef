"""
Per-domain artifact storage.

Artifacts (CSRs and KMS-encrypted private keys) are stored under a safe
name derived from the domain, one file per artifact kind.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Union

from ..errors import NotFoundError, OverwriteGuardError

logger = logging.getLogger(__name__)


class ArtifactKind(Enum):
    """Kinds of stored artifacts, valued by file extension."""
    CSR = "csr"
    PKENC = "pkenc"


def safe_name(domain: str) -> str:
    """Derive the storage name for a domain ("*.example.com" -> "star.example.com")."""
    return domain.replace("*", "star")


class ArtifactStore(ABC):
    """Abstract base class for artifact stores.

    Stores do not apply the force policy themselves: save() refuses to
    replace an existing artifact unless the caller passes overwrite=True.
    """

    @abstractmethod
    def location(self, name: str, kind: ArtifactKind) -> str:
        """Describe where an artifact lives, for display."""
        pass

    @abstractmethod
    def exists(self, name: str, kind: ArtifactKind) -> bool:
        pass

    @abstractmethod
    def save(
        self,
        content: Union[str, bytes],
        name: str,
        kind: ArtifactKind,
        overwrite: bool = False,
    ) -> str:
        """Persist an artifact.

        Args:
            content: Artifact content
            name: Safe name of the domain
            kind: Artifact kind
            overwrite: Replace an existing artifact

        Returns:
            The artifact location

        Raises:
            OverwriteGuardError: If the artifact exists and overwrite is False
        """
        pass

    @abstractmethod
    def read(self, name: str, kind: ArtifactKind) -> bytes:
        """Read an artifact.

        Raises:
            NotFoundError: If the artifact does not exist
        """
        pass

    @abstractmethod
    def list(self, kind: ArtifactKind) -> set[str]:
        """Return the safe names that have an artifact of this kind."""
        pass

    @abstractmethod
    def delete(self, name: str, kind: ArtifactKind) -> bool:
        """Delete an artifact.

        Returns:
            True if deleted, False if not found
        """
        pass


class LocalArtifactStore(ArtifactStore):
    """Artifact store backed by a local directory.

    Files are named <safe name>.<kind>. Each write goes to a temporary file
    in the same directory and is renamed into place.
    """

    def __init__(self, keys_dir: Path):
        """Initialize the store.

        Args:
            keys_dir: Directory holding the artifacts (created on first write)
        """
        self.keys_dir = Path(keys_dir)

    def _path(self, name: str, kind: ArtifactKind) -> Path:
        return self.keys_dir / f"{name}.{kind.value}"

    def location(self, name: str, kind: ArtifactKind) -> str:
        return str(self._path(name, kind))

    def exists(self, name: str, kind: ArtifactKind) -> bool:
        return self._path(name, kind).is_file()

    def save(
        self,
        content: Union[str, bytes],
        name: str,
        kind: ArtifactKind,
        overwrite: bool = False,
    ) -> str:
        path = self._path(name, kind)
        if path.exists() and not overwrite:
            raise OverwriteGuardError(
                f"Artifact already exists at {path}",
                hint="Use --force to overwrite if you are sure it is no longer needed.",
            )

        if isinstance(content, str):
            content = content.encode()

        self.keys_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.keys_dir, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            # Set restrictive permissions on encrypted keys
            if kind is ArtifactKind.PKENC and os.name != "nt":
                os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug("Saved %s artifact for %s to %s", kind.value, name, path)
        return str(path)

    def read(self, name: str, kind: ArtifactKind) -> bytes:
        path = self._path(name, kind)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(
                f"No {kind.value} artifact found for {name} at {path}",
                hint="Run 'certmagic list' to see stored keys.",
            ) from None

    def list(self, kind: ArtifactKind) -> set[str]:
        if not self.keys_dir.is_dir():
            return set()
        suffix = f".{kind.value}"
        return {
            path.name[: -len(suffix)]
            for path in self.keys_dir.iterdir()
            if path.is_file() and path.name.endswith(suffix) and not path.name.startswith(".")
        }

    def delete(self, name: str, kind: ArtifactKind) -> bool:
        path = self._path(name, kind)
        if not path.exists():
            return False
        path.unlink()
        logger.debug("Deleted %s", path)
        return True
