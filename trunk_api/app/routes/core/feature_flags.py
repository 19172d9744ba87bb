"""
Feature Flag API

Endpoints:
- GET  /api/feature-flags: current manifest for this environment
- POST /api/feature-flags/reload: re-read the manifest from disk

Reloading changes the flag values reported here immediately. Mounted
capability routes only follow the new values when the caller asks for a
remount (?remount=true).
"""

import logging

from fastapi import APIRouter, Depends, Query

from ...core.feature_flags import FeatureFlagResolver
from ..dependencies import get_capabilities, get_flags, get_mounter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feature-flags", tags=["feature-flags"])


@router.get("")
async def get_feature_flags(flags: FeatureFlagResolver = Depends(get_flags)):
    """Current manifest, shaped like the manifest source"""
    return flags.all().to_dict()


@router.post("/reload")
def reload_feature_flags(
    remount: bool = Query(False, description="Also rebind capability routes to the new flag values"),
    flags: FeatureFlagResolver = Depends(get_flags),
    mounter=Depends(get_mounter),
    capabilities: list = Depends(get_capabilities),
):
    """
    Reload feature flags without restarting

    A failed reload keeps the previous configuration and reports the error;
    the response is still 200 so callers can read the configuration in effect.
    """
    result = flags.reload()
    if not result.ok:
        return {
            "message": "Feature flags reload failed; previous configuration kept",
            "config": result.manifest.to_dict(),
            "error": result.error,
            "remounted": None,
        }

    remounted = None
    if remount:
        remounted = mounter.remount(capabilities)

    return {
        "message": "Feature flags reloaded",
        "config": result.manifest.to_dict(),
        "remounted": remounted,
    }
