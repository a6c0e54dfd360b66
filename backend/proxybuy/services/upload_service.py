# Overview: Upload storage; per-kind mime/size checks and unique file names under UPLOAD_FOLDER.

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass

from flask import current_app
from werkzeug.utils import secure_filename

from ..errors import StorageError, ValidationError


KB = 1024
MB = 1024 * KB


@dataclass(frozen=True)
class UploadRule:
    mime_prefixes: tuple[str, ...]
    max_bytes: int
    label: str


UPLOAD_RULES = {
    "screenshot": UploadRule(("image/",), 150 * KB, "150KB"),
    "verification": UploadRule(("image/",), 2 * MB, "2MB"),
    "chat": UploadRule(("image/", "video/"), 2 * MB, "2MB"),
}

_FALLBACK_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
}


@dataclass(frozen=True)
class StoredUpload:
    path: str           # public reference, /uploads/<subdir>/<name>
    media_type: str     # image or video
    size: int


def _stream_size(file) -> int:
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _subdir_for(kind: str, mimetype: str) -> str:
    if kind == "screenshot":
        return "screenshots"
    if kind == "verification":
        return "verification"
    return "videos" if mimetype.startswith("video/") else "chat"


def _extension_for(filename: str, mimetype: str) -> str:
    ext = os.path.splitext(secure_filename(filename or ""))[1].lower()
    if ext and len(ext) <= 8:
        return ext
    return _FALLBACK_EXTENSIONS.get(mimetype, "")


def save_upload(file, kind: str) -> StoredUpload:
    """
    Validate and store an uploaded file (a werkzeug FileStorage).

    Raises ValidationError for a missing file, a disallowed mime type or an
    oversized file; StorageError when the file cannot be written.
    """
    rule = UPLOAD_RULES.get(kind)
    if rule is None:
        raise ValueError(f"Unknown upload kind: {kind}")

    if file is None or not file.filename:
        raise ValidationError("No file provided", field=kind)

    mimetype = (file.mimetype or "").lower()
    if not mimetype.startswith(rule.mime_prefixes):
        allowed = " or ".join(p.rstrip("/") for p in rule.mime_prefixes)
        raise ValidationError(f"Only {allowed} files are allowed", field=kind)

    size = _stream_size(file)
    if size == 0:
        raise ValidationError("Uploaded file is empty", field=kind)
    if size > rule.max_bytes:
        raise ValidationError(f"File exceeds the {rule.label} limit", field=kind)

    subdir = _subdir_for(kind, mimetype)
    name = f"{uuid.uuid4().hex}{_extension_for(file.filename, mimetype)}"
    folder = os.path.join(current_app.config["UPLOAD_FOLDER"], subdir)

    try:
        os.makedirs(folder, exist_ok=True)
        file.save(os.path.join(folder, name))
    except OSError as exc:
        current_app.logger.error("Failed to store upload %s: %s", name, exc)
        raise StorageError("Could not store the uploaded file") from exc

    return StoredUpload(
        path=f"/uploads/{subdir}/{name}",
        media_type="video" if mimetype.startswith("video/") else "image",
        size=size,
    )


PUBLIC_SUBDIRS = ("screenshots", "chat", "videos")
PRIVATE_SUBDIRS = ("verification",)


def resolve_upload_dir(subdir: str, name: str) -> str | None:
    """Directory holding /uploads/<subdir>/<name>, or None if the reference is not one of ours."""
    if subdir not in PUBLIC_SUBDIRS + PRIVATE_SUBDIRS:
        return None
    if not name or secure_filename(name) != name:
        return None
    return os.path.join(current_app.config["UPLOAD_FOLDER"], subdir)


def discard_uploads(paths) -> int:
    """
    Delete files stored by save_upload whose request failed afterwards.

    Unknown references are skipped. A file that cannot be removed is
    logged and left in place. Returns the number of files removed.
    """
    removed = 0
    for path in paths or ():
        parts = (path or "").strip("/").split("/")
        if len(parts) != 3 or parts[0] != "uploads":
            continue
        _, subdir, name = parts
        folder = resolve_upload_dir(subdir, name)
        if folder is None:
            continue
        try:
            os.remove(os.path.join(folder, name))
        except OSError as exc:
            current_app.logger.warning("Failed to discard upload %s: %s", path, exc)
            continue
        removed += 1
    return removed
