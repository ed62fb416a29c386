"""Runtime entrypoint assembling the registry FastAPI app."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crates_api.apis.crates_api import router as CratesApiRouter
from crates_api.config.settings import get_api_settings
from crates_api.db.migrations import upgrade_database
from crates_api.db.seed_data import seed_categories, seed_dev_account, seed_reserved_names

app = FastAPI(
    title="Crates Registry API",
    description="Publish, browse and download crates.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_api_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(CratesApiRouter)


@app.on_event("startup")
async def _startup() -> None:
    upgrade_database()
    seed_reserved_names()
    seed_categories()
    seed_dev_account()
