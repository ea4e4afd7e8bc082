import uuid

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from buildr.dependencies import get_db
from buildr.services.project_service import get_project
from buildr.utils.sandbox import SANDBOX_CSP, with_error_hook

router = APIRouter(prefix="/api/projects/{project_id}/preview", tags=["preview"])


@router.get("")
async def serve_preview(project_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    project = await get_project(db, project_id)
    if not project or not project.code:
        raise HTTPException(status_code=404, detail="Project not found")

    headers = {"Content-Security-Policy": SANDBOX_CSP}
    return Response(content=with_error_hook(project.code), media_type="text/html", headers=headers)
