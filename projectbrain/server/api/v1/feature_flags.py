"""
API endpoints for feature flags.

Exposes the configuration-backed switches so clients can hide disabled
features.
"""

from typing import Dict

from fastapi import APIRouter

from projectbrain.server.services.deps import FeatureFlagServiceDep

router = APIRouter(tags=["feature-flags"])


@router.get(
    "",
    response_model=Dict[str, bool],
    summary="List Feature Flags",
    description="Every known feature flag and whether it is enabled.",
)
async def list_flags(flags: FeatureFlagServiceDep) -> Dict[str, bool]:
    return flags.get_all()


@router.get(
    "/{key}",
    summary="Get Feature Flag",
    description="Whether one feature is enabled. Unknown keys report disabled.",
)
async def get_flag(key: str, flags: FeatureFlagServiceDep):
    return {"key": key, "enabled": flags.is_feature_enabled(key)}
