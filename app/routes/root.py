"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

import core.config as config


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with service info."""
    prefix = config.API_PREFIX
    return {
        "service": config.SERVICE_NAME,
        "version": config.SERVICE_VERSION,
        "description": "Relationship and engagement API for Streamify",
        "endpoints": {
            "health": "/health",
            "follows": f"{prefix}/follows",
            "subscriptions": f"{prefix}/subscriptions",
            "activity": f"{prefix}/activity",
            "notifications": f"{prefix}/notifications",
            "history": f"{prefix}/history",
            "watchlater": f"{prefix}/watchlater",
            "profiles": f"{prefix}/users/{{username}}/profile",
            "tweets": f"{prefix}/tweets",
        },
    }
