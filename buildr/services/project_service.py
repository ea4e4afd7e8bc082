import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from buildr.models.project import Project
from buildr.models.project_version import ProjectVersion
from buildr.schemas.project import ProjectCreate, ProjectUpdate


async def create_project(db: AsyncSession, data: ProjectCreate) -> Project:
    project = Project(owner=data.owner, name=data.name, code=data.code, prompt_text=data.prompt_text)
    db.add(project)
    await db.flush()

    if data.code:
        db.add(ProjectVersion(
            project_id=project.id,
            version_number=1,
            code=data.code,
            change_description="Initial version",
        ))

    await db.commit()
    await db.refresh(project)
    return project


async def list_projects(db: AsyncSession, owner: str) -> list[Project]:
    result = await db.execute(
        select(Project).where(Project.owner == owner).order_by(Project.updated_at.desc())
    )
    return list(result.scalars().all())


async def get_project(db: AsyncSession, project_id: uuid.UUID) -> Project | None:
    return await db.get(Project, project_id)


async def update_project(db: AsyncSession, project_id: uuid.UUID, data: ProjectUpdate) -> Project | None:
    project = await db.get(Project, project_id)
    if not project:
        return None

    # Last write wins; the client always sends its latest document
    if data.name is not None:
        project.name = data.name
    if data.code is not None:
        project.code = data.code
        if data.save_as_version:
            await _add_version(db, project_id, data.code, data.version_description or "Auto-save")

    await db.commit()
    await db.refresh(project)
    return project


async def delete_project(db: AsyncSession, project_id: uuid.UUID) -> bool:
    project = await db.get(Project, project_id)
    if not project:
        return False
    await db.execute(delete(ProjectVersion).where(ProjectVersion.project_id == project_id))
    await db.execute(delete(Project).where(Project.id == project_id))
    await db.commit()
    return True


async def list_versions(db: AsyncSession, project_id: uuid.UUID, limit: int = 10) -> list[ProjectVersion]:
    result = await db.execute(
        select(ProjectVersion)
        .where(ProjectVersion.project_id == project_id)
        .order_by(ProjectVersion.version_number.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def restore_version(db: AsyncSession, project_id: uuid.UUID, version_number: int) -> Project | None:
    result = await db.execute(
        select(ProjectVersion).where(
            ProjectVersion.project_id == project_id,
            ProjectVersion.version_number == version_number,
        )
    )
    version = result.scalar_one_or_none()
    project = await db.get(Project, project_id)
    if not version or not project:
        return None

    project.code = version.code
    await _add_version(db, project_id, version.code, f"Restored from version {version_number}")
    await db.commit()
    await db.refresh(project)
    return project


async def _add_version(db: AsyncSession, project_id: uuid.UUID, code: str, description: str) -> ProjectVersion:
    result = await db.execute(
        select(func.max(ProjectVersion.version_number)).where(ProjectVersion.project_id == project_id)
    )
    latest = result.scalar_one_or_none() or 0
    version = ProjectVersion(
        project_id=project_id,
        version_number=latest + 1,
        code=code,
        change_description=description[:255],
    )
    db.add(version)
    await db.flush()
    return version
