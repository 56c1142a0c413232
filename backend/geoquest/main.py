"""
FastAPI application entry
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geoquest.config import configure_logging, settings, validate_config
from geoquest.routers import combat_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="GeoQuest Combat API",
    description="Turn-based dice combat resolution",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(combat_router, prefix=settings.api_prefix)


@app.on_event("startup")
async def startup_event():
    configure_logging()
    if validate_config():
        logger.info("Configuration OK")
    else:
        logger.warning("Configuration check failed, see warnings above")
    logger.info("API docs: http://localhost:8000/docs")


@app.get("/")
async def root():
    return {
        "message": "GeoQuest Combat API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
