"""
Health check route
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..dependencies import get_flags
from ...core.feature_flags import FeatureFlagResolver

router = APIRouter(prefix="/api/health", tags=["system"])


@router.get("")
async def health(flags: FeatureFlagResolver = Depends(get_flags)):
    return {
        "status": "healthy",
        "environment": flags.environment.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
