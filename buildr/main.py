import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from buildr.config import settings
from buildr.routers import generate, images, logs, preview, projects

logging.basicConfig(
    level=logging.DEBUG if settings.app_env == "development" else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Buildr", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generate.router)
app.include_router(logs.router)
app.include_router(images.router)
app.include_router(projects.router)
app.include_router(preview.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
