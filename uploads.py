"""
Image/video upload to Cloudinary.

The API never keeps files: bytes go straight to the CDN and the returned
``secure_url`` is what gets stored on content documents.
"""

import os
from typing import Optional

import cloudinary
import cloudinary.uploader
import structlog
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pymongo.database import Database

from database import get_db
from errors import UploadFailed, ValidationError
from reviews import get_pending_invite
from security import get_optional_admin

logger = structlog.get_logger(__name__)

UPLOAD_FOLDER = os.getenv("CLOUDINARY_FOLDER", "portfolio_uploads")

cloudinary.config(
    cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
    api_key=os.getenv("CLOUDINARY_API_KEY"),
    api_secret=os.getenv("CLOUDINARY_API_SECRET"),
    secure=True,
)

router = APIRouter()


def upload_file(file: UploadFile, folder: str = UPLOAD_FOLDER) -> str:
    try:
        result = cloudinary.uploader.upload(file.file, folder=folder, resource_type="auto")
    except (CloudinaryError, OSError, ValueError) as e:
        # the SDK raises ValueError for missing credentials or bad options
        logger.error("upload_failed", filename=file.filename, folder=folder, error=str(e))
        raise UploadFailed()
    url = result.get("secure_url")
    if not url:
        logger.error("upload_failed", filename=file.filename, folder=folder, error="no secure_url")
        raise UploadFailed()
    logger.info("upload_done", filename=file.filename, folder=folder)
    return url


@router.post("/api/upload/image")
def upload_image(
    file: Optional[UploadFile] = File(None),
    inviteId: Optional[str] = Form(None),
    admin: Optional[dict] = Depends(get_optional_admin),
    db: Database = Depends(get_db),
):
    # anonymous uploads are only for clients filling in a review invite
    if admin is None:
        if not inviteId:
            raise HTTPException(status_code=401, detail="Not authenticated")
        get_pending_invite(db, inviteId)
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")
    url = upload_file(file)
    return {"success": True, "url": url}
