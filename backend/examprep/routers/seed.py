"""Catalog seeding endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db import get_db
from examprep.models.question import SeedReport, SeedStatus
from examprep.services.question_catalog import QuestionCatalogService, load_local_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/seed", tags=["seed"])


@router.post("", response_model=SeedReport)
async def seed_catalog(db: AsyncSession = Depends(get_db)):
    """Upsert the bundled catalog into the store. Safe to run repeatedly."""
    return await QuestionCatalogService(db).seed(load_local_catalog())


@router.get("", response_model=SeedStatus)
async def seed_status(db: AsyncSession = Depends(get_db)):
    """Compare the bundled catalog with what the store holds."""
    return await QuestionCatalogService(db).status()
