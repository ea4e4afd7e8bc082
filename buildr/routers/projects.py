import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from buildr.dependencies import get_db
from buildr.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate, ProjectVersionResponse
from buildr.services import project_service

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(data: ProjectCreate, db: AsyncSession = Depends(get_db)):
    return await project_service.create_project(db, data)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(owner: str, db: AsyncSession = Depends(get_db)):
    return await project_service.list_projects(db, owner)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    project = await project_service.get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: uuid.UUID, data: ProjectUpdate, db: AsyncSession = Depends(get_db)):
    project = await project_service.update_project(db, project_id, data)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    deleted = await project_service.delete_project(db, project_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Project not found")


@router.get("/{project_id}/versions", response_model=list[ProjectVersionResponse])
async def list_versions(project_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await project_service.list_versions(db, project_id)


@router.post("/{project_id}/versions/{version_number}/restore", response_model=ProjectResponse)
async def restore_version(project_id: uuid.UUID, version_number: int, db: AsyncSession = Depends(get_db)):
    project = await project_service.restore_version(db, project_id, version_number)
    if not project:
        raise HTTPException(status_code=404, detail="Version not found")
    return project
