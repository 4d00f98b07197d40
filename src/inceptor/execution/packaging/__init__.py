"""
Artifact packaging — turn a snippet into a deployable Lambda archive.

Architecture::

    ┌──────────────────┐
    │ ArtifactPackager │
    │                  │
    │  .package()  ────┼──► ExecutionArtifact (zip bytes, handler.py)
    │  .inspect()  ────┼──► wrapped source text
    │  .write()    ────┼──► artifact.zip on disk
    └──────────────────┘

Usage::

    from inceptor.execution.packaging import ArtifactPackager

    artifact = ArtifactPackager().package("return 1+1")
    print(artifact.size_bytes, artifact.sha256)
"""

from inceptor.execution.packaging.packager import (
    ENTRY_POINT,
    MEMBER_NAME,
    ArtifactPackager,
    ExecutionArtifact,
    split_lines,
    wrap_source,
)

__all__ = [
    "ENTRY_POINT",
    "MEMBER_NAME",
    "ArtifactPackager",
    "ExecutionArtifact",
    "split_lines",
    "wrap_source",
]
