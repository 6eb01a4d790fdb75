# Overview: Service-layer operations for uploaded images; hosted storage with a local-disk fallback.

"""
Upload Service

Images go to Cloudinary when CLOUDINARY_CLOUD_NAME / API_KEY / API_SECRET are
all configured. Without them, or when the hosted upload fails, the file is
written under UPLOAD_DIR and served back from /uploads/<name>.

StoredImage.name is what gets persisted on a row:
- hosted: the secure URL (the public_id is kept for deletes)
- local: the bare file name
"""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass

import cloudinary
import cloudinary.uploader
from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


class UploadError(Exception):
    """Raised for upload validation or storage failures."""
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class StoredImage:
    name: str
    url: str
    hosted: bool
    public_id: str | None = None
    original_name: str | None = None
    size: int = 0
    mimetype: str | None = None

    def to_dict(self) -> dict:
        return {
            "fileName": self.public_id if self.hosted else self.name,
            "fileUrl": self.url,
            "originalName": self.original_name,
            "size": self.size,
            "mimetype": self.mimetype,
            "cloudinary": self.hosted,
        }


def upload_dir() -> str:
    path = os.path.abspath(current_app.config["UPLOAD_DIR"])
    os.makedirs(path, exist_ok=True)
    return path


def hosted_storage_enabled() -> bool:
    cfg = current_app.config
    return bool(
        cfg.get("CLOUDINARY_CLOUD_NAME")
        and cfg.get("CLOUDINARY_API_KEY")
        and cfg.get("CLOUDINARY_API_SECRET")
    )


def _configure_cloudinary() -> None:
    cfg = current_app.config
    cloudinary.config(
        cloud_name=cfg["CLOUDINARY_CLOUD_NAME"],
        api_key=cfg["CLOUDINARY_API_KEY"],
        api_secret=cfg["CLOUDINARY_API_SECRET"],
        secure=True,
    )


def _file_size(file: FileStorage) -> int:
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _extension(file: FileStorage) -> str:
    filename = secure_filename(file.filename or "")
    return os.path.splitext(filename)[1].lower()


def validate_image(file: FileStorage | None, *, check_type: bool = True) -> int:
    """Returns the file size; raises UploadError on a missing, oversized or non-image file."""
    if file is None or not file.filename:
        raise UploadError("No files were uploaded")

    size = _file_size(file)
    max_size = current_app.config["MAX_FILE_SIZE"]
    if size > max_size:
        raise UploadError(f"File size exceeds the limit of {max_size / 1024 / 1024:g}MB")

    if check_type and file.mimetype not in ALLOWED_IMAGE_TYPES:
        raise UploadError("Invalid file type. Only JPEG, PNG, GIF, and WEBP images are allowed")

    return size


def _store_hosted(file: FileStorage, folder: str, public_name: str) -> dict:
    _configure_cloudinary()
    base = current_app.config.get("CLOUDINARY_FOLDER") or "cafe-sundus"
    return cloudinary.uploader.upload(
        file.stream,
        folder=f"{base}/{folder}" if folder else base,
        public_id=public_name,
        resource_type="image",
        quality="auto",
        fetch_format="auto",
    )


def _store_local(file: FileStorage, file_name: str) -> str:
    file.stream.seek(0)
    file.save(os.path.join(upload_dir(), file_name))
    return file_name


def store_image(
    file: FileStorage,
    *,
    folder: str = "",
    prefix: str = "",
    check_type: bool = True,
) -> StoredImage:
    """
    Validate and store one uploaded image.

    Hosted storage is tried first when configured; any failure there is
    logged and the file is written to the local upload directory instead.
    """
    size = validate_image(file, check_type=check_type)
    stem = f"{prefix}{uuid.uuid4()}"
    common = {"original_name": file.filename, "size": size, "mimetype": file.mimetype}

    if hosted_storage_enabled():
        try:
            result = _store_hosted(file, folder, stem)
            return StoredImage(
                name=result["secure_url"],
                url=result["secure_url"],
                hosted=True,
                public_id=result.get("public_id"),
                **common,
            )
        except Exception:
            current_app.logger.warning(
                "Hosted image upload failed, falling back to local storage", exc_info=True
            )

    file_name = _store_local(file, f"{stem}{_extension(file)}")
    return StoredImage(name=file_name, url=f"/uploads/{file_name}", hosted=False, **common)


def discard_stored(stored: StoredImage | None) -> None:
    """Remove an image whose transaction rolled back, from Cloudinary or local disk."""
    if stored is None:
        return
    if stored.hosted:
        try:
            _configure_cloudinary()
            cloudinary.uploader.destroy(stored.public_id)
        except Exception:
            current_app.logger.warning(
                "Could not remove orphaned hosted upload %s", stored.public_id, exc_info=True
            )
        return
    path = os.path.join(upload_dir(), stored.name)
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        current_app.logger.warning("Could not remove orphaned upload %s", path, exc_info=True)


def delete_image(name: str) -> str:
    """
    Delete a stored image by local file name or hosted public_id.

    Hosted public ids contain a folder separator; bare names are local files.
    Returns "hosted" or "local".
    """
    if not name:
        raise UploadError("File name is required")

    if "/" in name:
        if not hosted_storage_enabled():
            raise UploadError("File not found", status=404)
        _configure_cloudinary()
        result = cloudinary.uploader.destroy(name)
        if result.get("result") not in ("ok", "not found"):
            raise UploadError("Failed to delete file from Cloudinary", status=500)
        return "hosted"

    safe = secure_filename(name)
    if safe != name:
        raise UploadError("Invalid file name")
    path = os.path.join(upload_dir(), safe)
    if not os.path.isfile(path):
        raise UploadError("File not found", status=404)
    os.remove(path)
    return "local"
