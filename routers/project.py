import logging
import math
import datetime
from typing import Optional
from uuid import UUID

from fastapi import (
    APIRouter, Depends, HTTPException, Request,
    status, Query, Form, File, UploadFile
)
from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import get_current_user, ensure_owner_or_admin
from models.project import Project, ProjectCategory, CATEGORIES
from models.user import User
from schemas.project_schema import ProjectCreate, ProjectUpdate, serialize_project
from services.storage import UploadUnitOfWork, get_unit_of_work

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["Projects"])


# --- FORM -------------------------------------------------------------------
# Fields a submission may blank out; FastAPI reports an empty form value as missing
CLEARABLE_FIELDS = {
    "name": "name",
    "linkedProfile": "linked_profile",
    "videoLink": "video_link",
    "flowFileLink": "flow_file_link",
    "deployedLink": "deployed_link",
    "instructionDocumentLink": "instruction_document_link",
}


async def project_form(
    request: Request,
    name: Optional[str] = Form(None),
    project_name: Optional[str] = Form(None, alias="projectName"),
    project_description: Optional[str] = Form(None, alias="projectDescription"),
    linked_profile: Optional[str] = Form(None, alias="linkedProfile"),
    video_link: Optional[str] = Form(None, alias="videoLink"),
    flow_file_link: Optional[str] = Form(None, alias="flowFileLink"),
    deployed_link: Optional[str] = Form(None, alias="deployedLink"),
    instruction_document_link: Optional[str] = Form(None, alias="instructionDocumentLink"),
    categories: Optional[str] = Form(None),
    tools: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
) -> dict:
    """Only the fields actually present in the submission."""
    values = {
        "name": name,
        "project_name": project_name,
        "project_description": project_description,
        "linked_profile": linked_profile,
        "video_link": video_link,
        "flow_file_link": flow_file_link,
        "deployed_link": deployed_link,
        "instruction_document_link": instruction_document_link,
        "categories": categories,
        "tools": tools,
        "rating": rating,
        "status": status,
    }
    form = await request.form()
    for key, field in CLEARABLE_FIELDS.items():
        if values[field] is None and form.get(key) == "":
            values[field] = ""
    return {key: value for key, value in values.items() if value is not None}


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def _get_project_or_404(db: Session, project_id: str) -> Project:
    try:
        key = UUID(project_id)
    except ValueError:
        key = None
    project = db.get(Project, key) if key else None
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def _page(query, page: int, limit: int) -> dict:
    total = query.count()
    projects = (
        query.order_by(Project.published_at.desc(), Project.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "success": True,
        "data": [serialize_project(p) for p in projects],
        "pagination": {
            "current": page,
            "pages": math.ceil(total / limit),
            "total": total,
        },
    }


# ---------------------------------------------------------------------------
# 1. CREATE PROJECT
# ---------------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    fields: dict = Depends(project_form),
    background_image: Optional[UploadFile] = File(None, alias="backgroundImage"),
    uow: UploadUnitOfWork = Depends(get_unit_of_work),
    user: User = Depends(get_current_user),
):
    # status is not settable on creation
    fields.pop("status", None)
    payload = ProjectCreate(**fields)

    try:
        image = await uow.stage(background_image) if _has_file(background_image) else None
        project = Project(
            **payload.model_dump(exclude={"categories", "status"}),
            background_image=image,
            created_by=user.id,
        )
        project.categories = payload.categories
        uow.db.add(project)
        uow.commit()
    except HTTPException:
        uow.rollback()
        raise
    except Exception as e:
        uow.rollback()
        logger.exception("Error creating project")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to create project", "error": str(e)},
        )

    uow.db.refresh(project)
    logger.info("Project %s created by %s", project.id, user.id)
    return {
        "success": True,
        "message": "Project created successfully",
        "data": serialize_project(project),
    }


# ---------------------------------------------------------------------------
# 2. LIST PROJECTS
# ---------------------------------------------------------------------------
@router.get("")
def list_projects(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    category: Optional[str] = None,
    status: str = "published",
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Project).filter(Project.status == status)
    if category:
        query = query.filter(Project.category_links.any(ProjectCategory.category == category))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Project.name.ilike(pattern),
            Project.project_name.ilike(pattern),
            Project.project_description.ilike(pattern),
        ))
    return _page(query, page, limit)


@router.get("/mine")
def list_my_projects(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(Project)
    if not user.is_admin:
        query = query.filter(Project.created_by == user.id)
    return _page(query, page, limit)


# ---------------------------------------------------------------------------
# 3. CATEGORIES
# ---------------------------------------------------------------------------
@router.get("/meta/categories")
def list_categories():
    return {"success": True, "data": list(CATEGORIES)}


# ---------------------------------------------------------------------------
# 4. GET PROJECT
# ---------------------------------------------------------------------------
@router.get("/{project_id}")
def get_project(project_id: str, db: Session = Depends(get_db)):
    project = _get_project_or_404(db, project_id)
    return {"success": True, "data": serialize_project(project)}


# ---------------------------------------------------------------------------
# 5. UPDATE PROJECT
# ---------------------------------------------------------------------------
@router.put("/{project_id}")
async def update_project(
    project_id: str,
    fields: dict = Depends(project_form),
    background_image: Optional[UploadFile] = File(None, alias="backgroundImage"),
    uow: UploadUnitOfWork = Depends(get_unit_of_work),
    user: User = Depends(get_current_user),
):
    project = _get_project_or_404(uow.db, project_id)
    ensure_owner_or_admin(project.created_by, user, "update")
    changes = ProjectUpdate(**fields).model_dump(exclude_unset=True)

    try:
        if _has_file(background_image):
            # the old file goes only once the new record is committed
            uow.discard(project.background_image)
            project.background_image = await uow.stage(background_image)
        if "categories" in changes:
            project.categories = changes.pop("categories")
        for field, value in changes.items():
            setattr(project, field, value)
        project.updated_at = datetime.datetime.utcnow()
        uow.commit()
    except HTTPException:
        uow.rollback()
        raise
    except Exception as e:
        uow.rollback()
        logger.exception("Error updating project %s", project_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to update project", "error": str(e)},
        )

    uow.db.refresh(project)
    return {
        "success": True,
        "message": "Project updated successfully",
        "data": serialize_project(project),
    }


# ---------------------------------------------------------------------------
# 6. DELETE PROJECT
# ---------------------------------------------------------------------------
@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    uow: UploadUnitOfWork = Depends(get_unit_of_work),
    user: User = Depends(get_current_user),
):
    project = _get_project_or_404(uow.db, project_id)
    ensure_owner_or_admin(project.created_by, user, "delete")

    try:
        uow.discard(project.background_image)
        uow.db.delete(project)
        uow.commit()
    except Exception as e:
        uow.rollback()
        logger.exception("Error deleting project %s", project_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to delete project", "error": str(e)},
        )

    logger.info("Project %s deleted by %s", project_id, user.id)
    return {"success": True, "message": "Project deleted successfully"}
