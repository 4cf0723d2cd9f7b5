"""Image storage for payment proofs and guest IDs.

Uploads arrive as base64 strings or ``data:<mime>;base64,...`` URLs from the
booking forms. The stored object's key doubles as its id; ``url`` is what the
booking rows reference.
"""
from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import uuid
from dataclasses import dataclass

import requests
from google.api_core.exceptions import GoogleAPIError, NotFound
from google.auth.exceptions import GoogleAuthError

from app.core.config import settings
from app.core.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

PAYMENT_PROOFS_FOLDER = "payment-proofs"
VALID_IDS_FOLDER = "valid-ids"

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[\w-]+=[\w-]+)*;base64,(?P<data>.*)$", re.DOTALL)
# Failures raised by the storage client or its HTTP transport
_REMOTE_ERRORS = (GoogleAPIError, GoogleAuthError, requests.exceptions.RequestException)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
    "application/pdf": "pdf",
}


@dataclass
class StoredImage:
    id: str
    url: str


def decode_payload(payload: str) -> tuple[bytes, str]:
    """Return (content, mime) for a base64 string or data URL."""
    if not payload or not payload.strip():
        raise ValidationError("Empty upload payload")
    mime = "application/octet-stream"
    raw = payload.strip()
    m = _DATA_URL.match(raw)
    if m:
        mime = m.group("mime") or mime
        raw = m.group("data")
    try:
        content = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Upload payload is not valid base64")
    if not content:
        raise ValidationError("Empty upload payload")
    return content, mime


def _object_key(folder: str, mime: str) -> str:
    prefix = (settings.IMAGE_FOLDER_PREFIX or "").strip("/")
    ext = _EXTENSIONS.get(mime, "bin")
    name = f"{uuid.uuid4().hex}.{ext}"
    return "/".join(p for p in (prefix, folder.strip("/"), name) if p)


class ImageStore:
    def upload(self, payload: str, folder: str) -> StoredImage:
        raise NotImplementedError

    def delete(self, image_id: str) -> bool:
        raise NotImplementedError


class GCSImageStore(ImageStore):
    """Google Cloud Storage bucket; public URL of the blob is returned."""

    def __init__(self, bucket_name: str, client=None):
        if client is None:
            from google.cloud import storage

            client = storage.Client()
        self.bucket = client.bucket(bucket_name)

    def upload(self, payload: str, folder: str) -> StoredImage:
        content, mime = decode_payload(payload)
        key = _object_key(folder, mime)
        try:
            blob = self.bucket.blob(key)
            blob.upload_from_string(content, content_type=mime)
            url = blob.public_url
        except _REMOTE_ERRORS as e:
            logger.error("Image upload to %s failed: %s", key, e)
            raise UpstreamError("Image upload failed") from e
        if not key or not url:
            raise UpstreamError("Image upload returned an incomplete result")
        logger.info("Uploaded image %s (%d bytes)", key, len(content))
        return StoredImage(id=key, url=url)

    def delete(self, image_id: str) -> bool:
        try:
            self.bucket.blob(image_id).delete()
        except NotFound:
            return False
        except _REMOTE_ERRORS as e:
            raise UpstreamError("Image delete failed") from e
        logger.info("Deleted image %s", image_id)
        return True


class LocalImageStore(ImageStore):
    """Writes under MEDIA_LOCAL_DIR; for local development without a bucket."""

    def __init__(self, base_dir: str, public_url: str):
        self.base_dir = base_dir
        self.public_url = public_url.rstrip("/")

    def upload(self, payload: str, folder: str) -> StoredImage:
        content, mime = decode_payload(payload)
        key = _object_key(folder, mime)
        path = os.path.join(self.base_dir, *key.split("/"))
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(content)
        except OSError as e:
            raise UpstreamError("Image upload failed") from e
        return StoredImage(id=key, url=f"{self.public_url}/{key}")

    def delete(self, image_id: str) -> bool:
        path = os.path.join(self.base_dir, *image_id.split("/"))
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise UpstreamError("Image delete failed") from e
        return True


def build_image_store() -> ImageStore:
    if settings.GCS_BUCKET_NAME:
        return GCSImageStore(settings.GCS_BUCKET_NAME)
    return LocalImageStore(settings.MEDIA_LOCAL_DIR or "./data/media", settings.MEDIA_PUBLIC_URL)
