"""
API Dependencies

FastAPI dependency providers. The application factory constructs the flag
resolver, mounter, and task store once and keeps them on app.state; routes
receive them through these functions.
"""

from typing import TYPE_CHECKING

from fastapi import Request

from ..core.feature_flags import FeatureFlagResolver
from ..services.stores.tasks_store import TasksStore

if TYPE_CHECKING:
    from ..core.capability_mounter import CapabilityMounter


def get_flags(request: Request) -> FeatureFlagResolver:
    """Get the flag resolver owned by this app"""
    return request.app.state.flags


def get_mounter(request: Request) -> "CapabilityMounter":
    return request.app.state.mounter


def get_tasks_store(request: Request) -> TasksStore:
    return request.app.state.tasks_store


def get_capabilities(request: Request) -> list:
    """Capability bindings the app was started with"""
    return request.app.state.capabilities
