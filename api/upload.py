import logging
import time
from pathlib import Path

from fastapi import APIRouter, File, UploadFile

import schemas
from config import settings
from errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])


def upload_dir() -> Path:
    path = Path(settings.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


@router.post("", response_model=schemas.UploadResponse)
async def upload_image(file: UploadFile = File(None)):
    if file is None or not file.filename:
        raise ValidationError("No file provided")
    if not (file.content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed")

    # read one byte past the cap to detect oversize files
    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise ValidationError(f"File too large (max {settings.max_upload_bytes // (1024 * 1024)}MB)")

    file_name = f"products-{int(time.time() * 1000)}-{Path(file.filename).name}"
    (upload_dir() / file_name).write_bytes(content)
    logger.info(f"📸 Stored upload {file_name} ({len(content)} bytes)")

    return {"success": True, "message": "Image uploaded", "image_url": f"/uploads/{file_name}", "file_name": file_name}


@router.delete("", response_model=schemas.Envelope)
async def delete_image(body: schemas.UploadDelete):
    # base name only, never a path outside the upload directory
    file_path = upload_dir() / Path(body.file_name).name
    file_path.unlink(missing_ok=True)
    return {"success": True, "message": "Image deleted successfully"}
