from collections.abc import AsyncIterator

import httpx

from buildr.config import settings


class GenerationHTTPError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class BuildrClient:
    """Thin async client for the Buildr HTTP API."""

    def __init__(self, base_url: str | None = None, http: httpx.AsyncClient | None = None):
        self.http = http or httpx.AsyncClient(base_url=base_url or settings.api_base_url, timeout=httpx.Timeout(120.0))

    async def aclose(self) -> None:
        await self.http.aclose()

    async def stream_generation(self, payload: dict) -> AsyncIterator[bytes]:
        async with self.http.stream("POST", "/api/generate", json=payload) as response:
            if response.status_code >= 400:
                await response.aread()
                raise GenerationHTTPError(response.status_code, _error_message(response))
            async for chunk in response.aiter_bytes():
                yield chunk

    async def post_log(self, record: dict) -> None:
        await self.http.post("/api/log", json=record)

    async def list_projects(self, owner: str) -> list[dict]:
        response = await self.http.get("/api/projects", params={"owner": owner})
        response.raise_for_status()
        return response.json()

    async def create_project(self, owner: str, name: str, code: str | None = None, prompt_text: str | None = None) -> dict:
        response = await self.http.post("/api/projects", json={
            "owner": owner,
            "name": name,
            "code": code,
            "prompt_text": prompt_text,
        })
        response.raise_for_status()
        return response.json()

    async def update_code(self, project_id: str, code: str, save_as_version: bool = False) -> dict:
        response = await self.http.patch(f"/api/projects/{project_id}", json={
            "code": code,
            "save_as_version": save_as_version,
        })
        response.raise_for_status()
        return response.json()

    async def delete_project(self, project_id: str) -> None:
        response = await self.http.delete(f"/api/projects/{project_id}")
        response.raise_for_status()


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error") or f"HTTP {response.status_code}"
    except (ValueError, AttributeError):
        return f"HTTP {response.status_code}"
