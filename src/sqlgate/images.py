"""Image storage used for ``Image`` values.

Images are kept outside the database; columns hold only the image id.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_IMAGE_ID_RE = re.compile(r"[0-9a-f]{32}")


@runtime_checkable
class ImageStore(Protocol):
    """Storage for image bytes keyed by an opaque id."""

    def save(self, data: bytes) -> str | None:
        """Store *data* and return its id, or None on failure."""
        ...

    def delete(self, image_id: str) -> bool:
        """Remove the image; return False if it could not be removed."""
        ...

    def load(self, image_id: str) -> bytes | None:
        """Return the image bytes, or None if no such image exists."""
        ...


class LocalImageStore:
    """Image store backed by a directory, one file per image.

    Ids are UUID4 hex strings. Anything else is rejected by ``load`` and
    ``delete`` so an id read back from a column can never point outside
    the directory.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, image_id: str) -> Path | None:
        if not _IMAGE_ID_RE.fullmatch(image_id):
            return None
        return self.directory / image_id

    def save(self, data: bytes) -> str | None:
        image_id = uuid.uuid4().hex
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = self.directory / f".{image_id}.tmp"
            tmp.write_bytes(data)
            tmp.replace(self.directory / image_id)
        except OSError as exc:
            logger.debug("Saving image to %s failed: %s", self.directory, exc)
            return None
        return image_id

    def delete(self, image_id: str) -> bool:
        path = self._path(image_id)
        if path is None:
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.debug("Removing image %s failed: %s", path, exc)
            return False
        return True

    def load(self, image_id: str) -> bytes | None:
        path = self._path(image_id)
        if path is None or not path.is_file():
            return None
        return path.read_bytes()
