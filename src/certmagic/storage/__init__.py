"""
Artifact storage for CSRs and encrypted private keys.
"""

from .artifact_store import ArtifactKind, ArtifactStore, LocalArtifactStore, safe_name

__all__ = [
    "ArtifactKind",
    "ArtifactStore",
    "LocalArtifactStore",
    "safe_name",
]
