"""
samaj/api/health.py — Health check.

GET /api/v1/health — checks that PostgreSQL answers.
"""

from fastapi import APIRouter

from samaj.database import check_connection

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health():
    """Reports database availability."""
    db_ok = await check_connection()
    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "service": "samaj",
    }
