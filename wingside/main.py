"""
Wingside Backend - FastAPI Application
Lead scoring, Wing Club points and the scheduled tier jobs.
"""
import logging

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.config import settings
from wingside.database import init_db, get_session
from wingside.schemas.common import HealthResponse

from wingside.api import leads, scoring, loyalty, cron

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info(f"Wingside API {VERSION} started")
    yield


app = FastAPI(
    title="Wingside API",
    description="Lead scoring and Wing Club loyalty backend",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(leads.router)
app.include_router(scoring.router)
app.include_router(loyalty.router)
app.include_router(cron.router)  # Scheduled jobs, cron secret required


@app.get("/")
async def root():
    return {
        "message": "Wingside API is running",
        "version": VERSION,
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health(session: AsyncSession = Depends(get_session)):
    """Liveness plus a database round trip."""
    try:
        conn = await session.connection()
        await conn.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check could not reach the database: {e}")
        database = "unavailable"

    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=VERSION,
        database=database
    )
