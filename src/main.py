#!/usr/bin/env python3
"""
FastAPI server for the email enrichment service.
"""

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

# .env must be loaded before the settings singleton is built
load_dotenv()

from common.logging import get_logger  # noqa: E402
from routes import enrichment, health  # noqa: E402
from services.enrichment import get_enrichment_service  # noqa: E402

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    service = get_enrichment_service()
    if service.initialized and service.get_available_providers():
        names = ", ".join(p.value for p in service.get_available_providers())
        logger.info(f"Email enrichment ready with providers: {names}")
    else:
        logger.error("Email enrichment has no usable providers; /api/enrich-email will return 503")
    yield


app = FastAPI(
    title="CrewCast Email Enrichment API",
    description="Finds contact emails for creator domains via Apollo, Lusha and website scraping",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(enrichment.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.environ.get("PORT", 8080)), log_level="info")
