"""
Trunk API - Backend server
FastAPI application whose optional route groups are mounted from
environment-scoped feature flags
"""

import logging
from typing import Iterable, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.capability_mounter import CapabilityMounter
from .core.capability_registry import CapabilityBinding, default_bindings
from .core.feature_flags import FeatureFlagResolver, ManifestLoader
from .core.settings import Settings
from .routes.core import feature_flags, health, tasks
from .services.stores.tasks_store import TasksStore
from .startup_banner import VERSION, print_startup_banner

logger = logging.getLogger(__name__)

NOT_FOUND_HINT = "This feature might be disabled via feature flags"


CORE_ROUTERS = (health.router, feature_flags.router, tasks.router)


def register_core_routes(app: FastAPI) -> List[str]:
    """
    Register routes that are always available

    Returns:
        Prefixes owned by the core routers; capabilities may not overlap them
    """
    for router in CORE_ROUTERS:
        app.include_router(router)
    return [router.prefix for router in CORE_ROUTERS]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        """Unmatched paths get a uniform 404, including gated-off capabilities"""
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not Found",
                    "message": f"Route {request.method} {request.url.path} not found",
                    "hint": NOT_FOUND_HINT,
                },
            )
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": str(exc)},
        )


def create_app(
    settings: Optional[Settings] = None,
    capabilities: Optional[Iterable[CapabilityBinding]] = None,
) -> FastAPI:
    """
    Build the application

    The flag manifest is loaded and every capability is mounted here, before
    the server accepts requests.

    Args:
        settings: Runtime settings; read from the environment if omitted
        capabilities: Capability bindings; the static registry if omitted

    Raises:
        CapabilityConfigError: If capability prefixes conflict; the server must not start
    """
    settings = settings or Settings.from_env()
    bindings = list(capabilities) if capabilities is not None else default_bindings()

    app = FastAPI(
        title="Trunk API",
        description="Task API with feature-flagged capabilities",
        version=VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    resolver = FeatureFlagResolver(settings.environment, ManifestLoader(settings.flags_dir))
    app.state.settings = settings
    app.state.flags = resolver
    app.state.tasks_store = TasksStore(settings.tasks_db_path)
    app.state.capabilities = bindings

    core_prefixes = register_core_routes(app)
    register_exception_handlers(app)

    mounter = CapabilityMounter(app, resolver, reserved_prefixes=core_prefixes)
    app.state.mounter = mounter
    results = mounter.mount_all(bindings)

    logger.info(
        f"Environment {settings.environment.value}: "
        f"mounted={sorted(name for name, ok in results.items() if ok)}, "
        f"skipped={sorted(name for name, ok in results.items() if not ok)}"
    )
    return app


def main():
    """Main entry point for running the server"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    settings = Settings.from_env()
    app = create_app(settings)

    labels = {binding.flag_name: binding.label for binding in app.state.capabilities}
    print_startup_banner(
        environment=settings.environment.value,
        port=settings.port,
        mounted=app.state.mounter.mounted,
        labels=labels,
    )

    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
