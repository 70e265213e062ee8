# backend/utils/storage.py
import shutil
import uuid
from pathlib import Path

from fastapi import UploadFile

from config import settings

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}

# Product images live in a subfolder of the upload directory
PRODUCT_IMAGE_SUBDIR = "products"


class ImageUploadError(Exception):
    pass


def product_image_dir() -> Path:
    path = Path(settings.UPLOAD_DIR) / PRODUCT_IMAGE_SUBDIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def _safe_name(filename: str) -> str:
    # Keep only the base name, path parts in client supplied names are dropped
    name = Path(filename or "image").name
    return name.replace(" ", "_") or "image"


def save_image(file: UploadFile) -> str:
    """Write an uploaded product image to disk and return its public URL.

    Every upload gets a uuid prefix, so two files with the same name never collide.
    """
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise ImageUploadError("Invalid file type")

    unique_filename = f"{uuid.uuid4().hex}_{_safe_name(file.filename)}"
    save_path = product_image_dir() / unique_filename
    try:
        with open(save_path, "wb") as buffer:
            shutil.copyfileobj(file.file, buffer)
    except OSError as e:
        raise ImageUploadError(f"File save error: {e}") from e
    finally:
        file.file.close()

    return f"/uploads/{PRODUCT_IMAGE_SUBDIR}/{unique_filename}"
