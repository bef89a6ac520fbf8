# This project was developed with assistance from AI tools.
"""Health check route."""

from fastapi import APIRouter, Depends
from investor_db import DatabaseService, get_db_service
from pydantic import BaseModel

from .. import __version__

router = APIRouter()


class HealthItem(BaseModel):
    name: str
    status: str
    message: str
    version: str | None = None


@router.get("/", response_model=list[HealthItem])
async def health(db_service: DatabaseService = Depends(get_db_service)) -> list[HealthItem]:
    """API and database health."""
    db_ok = await db_service.health_check()
    return [
        HealthItem(name="API", status="healthy", message="API is running", version=__version__),
        HealthItem(
            name="Database",
            status="healthy" if db_ok else "unhealthy",
            message="PostgreSQL is reachable" if db_ok else "PostgreSQL is unreachable",
        ),
    ]
