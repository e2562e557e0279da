"""
Destinations for generated source text.
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

__all__ = ['ArtifactSink', 'DirectorySink', 'MemorySink']


class ArtifactSink(ABC):
    """Receives generated artifacts by relative path.
    """

    @abstractmethod
    def write(self, path: str, text: str) -> None:
        """Store one artifact.

        Args:
            path: Relative, `/`-separated path inside the generated package
            text: Full source text
        """


class DirectorySink(ArtifactSink):
    """Write artifacts under a root directory, creating parents as needed.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def write(self, path: str, text: str) -> None:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding='utf-8')
        logger.info(f'Wrote {target}')


class MemorySink(ArtifactSink):
    """Keep artifacts in a dict, for tests and previews."""

    def __init__(self):
        self.artifacts: dict[str, str] = {}

    def write(self, path: str, text: str) -> None:
        self.artifacts[path] = text

    def __getitem__(self, path: str) -> str:
        return self.artifacts[path]

    def __contains__(self, path: str) -> bool:
        return path in self.artifacts
