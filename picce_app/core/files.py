from __future__ import annotations

import logging
from typing import Iterable, Mapping

from django.core.files.storage import default_storage
from django.db import transaction

from .exceptions import DanglingReferenceError

logger = logging.getLogger(__name__)

Coordinates = tuple


def format_coordinates(coordinates: Coordinates) -> str:
    """Render ``("pages", 0, "files", 1)`` as ``pages[0][files][1]``."""
    head, *rest = coordinates
    return str(head) + "".join(f"[{part}]" for part in rest)


class UploadPool:
    """Uploaded blob paths keyed by the tree slot they were sent for.

    Each declared new file claims exactly one upload. Claiming an empty slot,
    or finishing with unclaimed uploads, fails the surrounding operation.
    """

    def __init__(self, uploads: Mapping[Coordinates, str] | None = None):
        self._pending = dict(uploads or {})

    def claim(self, coordinates: Coordinates) -> str:
        try:
            return self._pending.pop(tuple(coordinates))
        except KeyError:
            raise DanglingReferenceError(
                f"No uploaded file matches the declared slot {format_coordinates(coordinates)}.",
                {"slot": format_coordinates(coordinates)},
            ) from None

    def ensure_consumed(self) -> None:
        if self._pending:
            raise DanglingReferenceError(
                "Files not associated with any declared file slot detected.",
                {"fields": sorted(format_coordinates(c) for c in self._pending)},
            )


def delete_blobs(paths: Iterable[str]) -> None:
    for path in paths:
        if default_storage.exists(path):
            default_storage.delete(path)
        else:
            logger.warning("Blob %s was already gone", path)


def discard_blobs_on_commit(paths: Iterable[str]) -> None:
    """Delete blobs once the surrounding transaction commits."""
    paths = sorted(set(paths))
    if paths:
        transaction.on_commit(lambda: delete_blobs(paths))
