"""File storage for uploaded images."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from src.core.config import settings
from src.shared.ulid import generate_ulid

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Write files under a local directory that the app serves statically."""

    def __init__(self, root: str | Path | None = None, url_prefix: str | None = None):
        self.root = Path(root or settings.upload_dir)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")

    def _path_for_url(self, public_url: str | None) -> Path | None:
        if not public_url or not public_url.startswith(f"{self.url_prefix}/"):
            return None
        relative = public_url[len(self.url_prefix) + 1 :]
        path = (self.root / relative).resolve()
        if self.root.resolve() not in path.parents:
            return None
        return path

    def _write(self, target: Path, content: bytes, previous: Path | None) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        if previous is not None and previous != target:
            previous.unlink(missing_ok=True)

    async def save(self, content: bytes, filename: str, folder: str = "", replaces: str | None = None) -> str:
        """Persist ``content`` and return the public URL it is served from.

        ``replaces`` is the public URL of a file this one supersedes; it is
        removed once the new file is written.
        """
        suffix = Path(filename).suffix.lower()
        stored_name = f"{generate_ulid()}{suffix}"
        target_dir = self.root / folder if folder else self.root
        await asyncio.to_thread(self._write, target_dir / stored_name, content, self._path_for_url(replaces))
        logger.info("Stored upload %s (%d bytes)", stored_name, len(content))
        relative = f"{folder}/{stored_name}" if folder else stored_name
        return f"{self.url_prefix}/{relative}"


def get_storage() -> LocalFileStorage:
    return LocalFileStorage()
