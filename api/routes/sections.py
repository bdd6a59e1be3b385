"""Section endpoints, including section images."""
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import require_staff
from api.models.exams import (
    ImageUploadResponse,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
)
from api.models.db.exam import TestSection
from api.models.db.user import User
from api.services import exam_service, image_service

router = APIRouter(prefix="/api", tags=["sections"])


@router.post("/sections", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
def create_section(
    payload: SectionCreate,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> TestSection:
    exam_service.get_managed_test(db, payload.test_id, current_user)
    return exam_service.create_section(db, payload.model_dump())


@router.patch("/sections/{section_id}", response_model=SectionResponse)
def update_section(
    section_id: str,
    payload: SectionUpdate,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> TestSection:
    section = exam_service.get_section(db, section_id)
    exam_service.get_managed_test(db, section.test_id, current_user)
    return exam_service.update_section(db, section, payload.model_dump(exclude_unset=True))


@router.delete("/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_section(
    section_id: str,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> None:
    section = exam_service.get_section(db, section_id)
    exam_service.get_managed_test(db, section.test_id, current_user)
    image_service.delete_section_image(section.image_url)
    exam_service.delete_section(db, section)


@router.post("/sections/{section_id}/image", response_model=ImageUploadResponse)
async def upload_section_image(
    section_id: str,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
    file: UploadFile = File(...),
) -> ImageUploadResponse:
    """Upload (and downsize) the picture shown for every question of a section."""
    section = exam_service.get_section(db, section_id)
    exam_service.get_managed_test(db, section.test_id, current_user)

    image_url, size = await image_service.process_section_image(file, section.id)
    previous = section.image_url
    exam_service.update_section(db, section, {"image_url": image_url})
    image_service.delete_section_image(previous)
    return ImageUploadResponse(image_url=image_url, size=size)


@router.get("/section-images/{filename}")
def get_section_image(filename: str) -> FileResponse:
    return FileResponse(image_service.section_image_path(filename))
