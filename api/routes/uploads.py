"""Answer audio and payment receipt upload and download."""
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from api.dependencies.auth import get_current_user
from api.models.purchases import ReceiptUploadResponse
from api.models.submissions import AudioUploadResponse
from api.models.db.user import User
from api.services import storage_service

router = APIRouter(prefix="/api", tags=["audio"])


@router.post("/upload-audio", response_model=AudioUploadResponse)
async def upload_audio(
    current_user: Annotated[User, Depends(get_current_user)],
    file: UploadFile = File(...),
) -> AudioUploadResponse:
    url, size = await storage_service.store_audio(file, current_user.id)
    return AudioUploadResponse(url=url, size=size)


@router.get("/audio/{filename}")
def get_audio(
    filename: str,
    current_user: Annotated[User, Depends(get_current_user)],
) -> FileResponse:
    return FileResponse(storage_service.audio_file_path(filename))


@router.post("/upload-receipt", response_model=ReceiptUploadResponse)
async def upload_receipt(
    current_user: Annotated[User, Depends(get_current_user)],
    file: UploadFile = File(...),
) -> ReceiptUploadResponse:
    url, size = await storage_service.store_receipt(file, current_user.id)
    return ReceiptUploadResponse(url=url, size=size)


@router.get("/receipts/{filename}")
def get_receipt(
    filename: str,
    current_user: Annotated[User, Depends(get_current_user)],
) -> FileResponse:
    return FileResponse(storage_service.receipt_file_path(filename))
