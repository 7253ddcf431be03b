"""
OCR routes: read Egyptian ID cards and Russian passports from a photo, and
store the photo so its URL can be kept on the resident.

Scans only propose values; nothing is written until the operator submits a
check-in with them.
"""
import mimetypes
import uuid

from fastapi import APIRouter, Depends, File, UploadFile

from housing.core import ocr, storage
from housing.core.auth import CurrentUser, get_current_user
from housing.core.config import settings
from housing.core.exceptions import InvalidFieldError
from housing.schemas.ocr import OcrScanResult, UploadResult

router = APIRouter(prefix="/ocr", tags=["ocr"])

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def _read_image(image: UploadFile) -> bytes:
    content_type = image.content_type or ""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidFieldError("image", content_type)
    data = image.file.read()
    if len(data) > settings.MAX_IMAGE_SIZE_MB * 1024 * 1024:
        raise InvalidFieldError("image", f"{len(data)} bytes (max {settings.MAX_IMAGE_SIZE_MB} MB)")
    return data


@router.post("/egyptian-id", response_model=OcrScanResult)
def scan_egyptian_id(
    image: UploadFile = File(..., description="Photo of one or more Egyptian national ID cards"),
    current_user: CurrentUser = Depends(get_current_user),
):
    data = _read_image(image)
    return ocr.scan_egyptian_id(data, image.content_type)


@router.post("/russian-passport", response_model=OcrScanResult)
def scan_russian_passport(
    image: UploadFile = File(..., description="Photo of one or more Russian passports"),
    current_user: CurrentUser = Depends(get_current_user),
):
    data = _read_image(image)
    return ocr.scan_russian_passport(data, image.content_type)


@router.post("/upload", response_model=UploadResult, status_code=201)
def upload_image(
    image: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
):
    data = _read_image(image)
    ext = mimetypes.guess_extension(image.content_type) or ".jpg"
    key = f"ocr-images/{uuid.uuid4().hex}{ext}"
    return UploadResult(url=storage.put(key, data, image.content_type))
