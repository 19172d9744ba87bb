"""
Capability Registry

Static mapping from flag name to the router it gates and the path prefix it
owns. Routers are imported directly; nothing is resolved from strings at
runtime, so an unregistered name is a configuration error.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from fastapi import APIRouter

from .errors import UnknownCapabilityError
from trunk_api.features.advanced_search.routes import router as advanced_search_router
from trunk_api.features.export_csv.routes import router as export_csv_router


@dataclass(frozen=True)
class CapabilityBinding:
    """Flag name, owned path prefix, and the handler group behind it"""
    flag_name: str
    prefix: str
    router: APIRouter
    tags: Tuple[str, ...] = ()
    label: str = ""


CAPABILITIES: Dict[str, CapabilityBinding] = {
    binding.flag_name: binding
    for binding in (
        CapabilityBinding(
            flag_name="advanced_search",
            prefix="/api/search",
            router=advanced_search_router,
            tags=("search",),
            label="Advanced Search",
        ),
        CapabilityBinding(
            flag_name="export_csv",
            prefix="/api/export",
            router=export_csv_router,
            tags=("export",),
            label="Export CSV",
        ),
    )
}


def get_binding(name: str) -> CapabilityBinding:
    """
    Look up a registered capability by flag name

    For hosts that build their own binding list from a subset of names.

    Raises:
        UnknownCapabilityError: If no capability is registered under name
    """
    try:
        return CAPABILITIES[name]
    except KeyError:
        raise UnknownCapabilityError(name) from None


def default_bindings() -> List[CapabilityBinding]:
    return list(CAPABILITIES.values())
