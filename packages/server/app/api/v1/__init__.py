"""
API v1 Router
"""

from fastapi import APIRouter
from . import courses, enrollments, projects, shares

router = APIRouter()

router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(shares.router, prefix="/shares", tags=["Sharing"])
router.include_router(courses.router, prefix="/courses", tags=["Courses"])
router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/projects",
            "/projects/{projectId}/shares",
            "/shares",
            "/courses",
            "/enrollments",
        ],
    }
