"""Tests for the project service queries."""

from sqlalchemy import inspect

from buildr.schemas.project import ProjectCreate, ProjectUpdate
from buildr.services import project_service

PAGE = "<!DOCTYPE html><html><body><h1>Sourdough Co.</h1></body></html>"


async def test_project_reads_do_not_load_versions(session_factory):
    """Test that fetching a project leaves its version history unloaded."""
    async with session_factory() as db:
        created = await project_service.create_project(db, ProjectCreate(owner="ana", name="Bakery", code=PAGE))
        project_id = created.id

    async with session_factory() as db:
        project = await project_service.get_project(db, project_id)
        assert "versions" in inspect(project).unloaded

        listed = await project_service.list_projects(db, "ana")
        assert "versions" in inspect(listed[0]).unloaded

        updated = await project_service.update_project(
            db, project_id, ProjectUpdate(code=PAGE + "<!-- v2 -->", save_as_version=True)
        )
        assert "versions" in inspect(updated).unloaded

        versions = await project_service.list_versions(db, project_id)
        assert [v.version_number for v in versions] == [2, 1]
