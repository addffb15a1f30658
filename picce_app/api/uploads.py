"""Multipart handling for tree writes.

A multipart request carries the JSON tree in a ``payload`` field and one file
part per new file slot, named after the slot's position in the tree, e.g.
``pages[0][item_groups][1][items][0][files][0]``. Files are written to the
blob store before any business logic runs and removed again if the request
fails.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from contextlib import contextmanager
from typing import Iterable

from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename
from rest_framework import serializers

from picce_app.core.files import delete_blobs

logger = logging.getLogger(__name__)

UPLOAD_DIR = "uploads"
_TOKEN = re.compile(r"[A-Za-z_]+|\d+")


def parse_field_name(name: str) -> tuple:
    """``items[0][files][2]`` -> ``("items", 0, "files", 2)``."""
    return tuple(int(token) if token.isdigit() else token for token in _TOKEN.findall(name))


def request_payload(request):
    """Return the JSON tree of a request, whether sent as JSON or multipart."""
    if request.content_type.startswith("multipart/"):
        raw = request.data.get("payload")
        if raw is None:
            raise serializers.ValidationError({"payload": ["Multipart requests must carry a JSON payload field."]})
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise serializers.ValidationError({"payload": [f"Invalid JSON: {exc.msg}."]}) from None
    return request.data


def discard_uploads(paths: Iterable[str]) -> None:
    paths = list(paths)
    if paths:
        logger.info("Discarding %d uploaded file(s) of a failed request", len(paths))
        delete_blobs(paths)


@contextmanager
def stored_uploads(request):
    """Store every uploaded file and yield ``{coordinates: path}``.

    Stored files are deleted when the body of the ``with`` block raises.
    """
    uploads: dict[tuple, str] = {}
    try:
        for name, files in request.FILES.lists():
            if len(files) > 1:
                raise serializers.ValidationError({name: ["Only one file may be uploaded per slot."]})
            upload = files[0]
            path = f"{UPLOAD_DIR}/{uuid.uuid4().hex}-{get_valid_filename(upload.name)}"
            uploads[parse_field_name(name)] = default_storage.save(path, upload)
        yield uploads
    except Exception:
        discard_uploads(uploads.values())
        raise
