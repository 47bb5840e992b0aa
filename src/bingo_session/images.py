from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

logger = logging.getLogger(__name__)

IMAGE_PATH_PREFIX = "blob:"


def build_image_path(prize_id: str) -> str:
    """Reference stored in ``Prize.image_path`` for an image owned by the blob store."""
    return f"{IMAGE_PATH_PREFIX}{prize_id}"


def is_image_path(value: Optional[str]) -> bool:
    return isinstance(value, str) and value.startswith(IMAGE_PATH_PREFIX)


def extract_image_id(image_path: str) -> str:
    return image_path[len(IMAGE_PATH_PREFIX):]


class ImageStore(ABC):
    """Opaque blob store for prize images. Contents are never inspected."""

    @abstractmethod
    def save(self, image_id: str, blob: bytes) -> None:
        """Store ``blob`` under ``image_id``."""

    @abstractmethod
    def read(self, image_id: str) -> Optional[bytes]:
        """Return the blob or None when missing."""

    @abstractmethod
    def delete(self, image_id: str) -> None:
        """Delete ``image_id``; no-op if absent."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every stored blob."""


class InMemoryImageStore(ImageStore):
    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}

    def save(self, image_id: str, blob: bytes) -> None:
        self._blobs[image_id] = bytes(blob)

    def read(self, image_id: str) -> Optional[bytes]:
        return self._blobs.get(image_id)

    def delete(self, image_id: str) -> None:
        self._blobs.pop(image_id, None)

    def clear(self) -> None:
        logger.debug("Clearing %d stored images", len(self._blobs))
        self._blobs.clear()

    def __contains__(self, image_id: str) -> bool:
        return image_id in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)
