"""ArtifactPackager — wrap a snippet into a single-file Lambda archive.

The snippet becomes the body of an entry-point function::

    def main(event, context):
    	<line 1>
    	<line 2>
    	...

Every line is prefixed with one tab, in order, blank lines included (a
blank line becomes a lone tab). Nothing is validated: a snippet that does
not compile surfaces as an error from the function at invocation time.

The text is stored as the only member, ``handler.py``, of an in-memory
zip archive, which is the format Lambda accepts for ``Code.ZipFile``.
"""

from __future__ import annotations

import hashlib
import io
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path

from inceptor.core.errors import PackagingError
from inceptor.core.logging import get_logger

logger = get_logger(__name__)

ENTRY_POINT = "def main(event, context):\n"
INDENT = "\t"
MEMBER_NAME = "handler.py"
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

# rw-r--r--, the function runtime must be able to read the module
_MEMBER_MODE = 0o100644


@dataclass(frozen=True)
class ExecutionArtifact:
    """A packaged snippet ready to be installed in a function.

    Attributes:
        content: Zip archive bytes.
        source: The wrapped source stored in the archive.
        member_name: Name of the single archive member.
    """

    content: bytes
    source: str
    member_name: str = MEMBER_NAME

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    @property
    def sha256(self) -> str:
        """SHA-256 of the archive bytes."""
        return hashlib.sha256(self.content).hexdigest()

    def read_member(self) -> str:
        """Decode the archive member back from ``content``."""
        return ArtifactPackager.inspect(self.content)


def wrap_source(source: str) -> str:
    """Wrap a snippet into the entry-point function.

    Example:
        >>> wrap_source("return 1+1")
        'def main(event, context):\\n\\treturn 1+1\\n'
        >>> wrap_source("")
        'def main(event, context):\\n'
    """
    return ENTRY_POINT + "".join(f"{INDENT}{line}\n" for line in split_lines(source))


def split_lines(source: str) -> list[str]:
    """Split on ``\\r\\n``, ``\\r`` and ``\\n`` only.

    These are the only line breaks the Python tokenizer honours; form
    feeds, ``\\x85`` and U+2028/U+2029 stay inside their line. An empty
    snippet has no lines and a single trailing newline adds no empty line.

    Example:
        >>> split_lines('a\\r\\nb = "x\\x0cy"\\n')
        ['a', 'b = "x\\x0cy"']
    """
    if not source:
        return []
    lines = _LINE_BREAK.split(source)
    if lines[-1] == "":
        lines.pop()
    return lines


class ArtifactPackager:
    """Build single-member zip archives from snippets.

    Example::

        packager = ArtifactPackager()
        artifact = packager.package("return 1+1")
        artifact.read_member()
        # 'def main(event, context):\\n\\treturn 1+1\\n'
    """

    def __init__(self, *, member_name: str = MEMBER_NAME, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self._member_name = member_name
        self._compression = compression

    def package(self, source: str) -> ExecutionArtifact:
        """Wrap ``source`` and serialise it into a zip archive.

        Raises:
            PackagingError: If the archive cannot be written.
        """
        wrapped = wrap_source(source)
        buffer = io.BytesIO()

        info = zipfile.ZipInfo(self._member_name)
        info.compress_type = self._compression
        info.external_attr = _MEMBER_MODE << 16

        try:
            with zipfile.ZipFile(buffer, "w") as archive:
                archive.writestr(info, wrapped.encode("utf-8"))
        except (OSError, ValueError, zipfile.BadZipFile, RuntimeError) as exc:
            raise PackagingError(f"Could not package source code: {exc}", cause=exc) from exc

        artifact = ExecutionArtifact(
            content=buffer.getvalue(),
            source=wrapped,
            member_name=self._member_name,
        )
        logger.debug(
            "artifact.packaged",
            member=self._member_name,
            size_bytes=artifact.size_bytes,
            lines=len(split_lines(source)),
        )
        return artifact

    @staticmethod
    def inspect(content: bytes) -> str:
        """Read the single member of an archive back as text.

        Raises:
            PackagingError: If the bytes are not a zip archive or hold more
                or fewer than one member.
        """
        try:
            with zipfile.ZipFile(io.BytesIO(content), "r") as archive:
                names = archive.namelist()
                if len(names) != 1:
                    raise PackagingError(
                        f"Expected exactly one archive member, found {len(names)}"
                    )
                return archive.read(names[0]).decode("utf-8")
        except zipfile.BadZipFile as exc:
            raise PackagingError(f"Not a zip archive: {exc}", cause=exc) from exc

    def write(self, artifact: ExecutionArtifact, output: str | Path) -> Path:
        """Save an artifact's archive to disk, adding ``.zip`` if missing."""
        output_path = Path(output)
        if output_path.suffix != ".zip":
            output_path = output_path.with_suffix(".zip")
        try:
            output_path.write_bytes(artifact.content)
        except OSError as exc:
            raise PackagingError(f"Could not write archive {output_path}: {exc}", cause=exc) from exc

        logger.info("artifact.written", output=str(output_path), size_bytes=artifact.size_bytes)
        return output_path
