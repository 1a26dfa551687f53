from __future__ import annotations

from fastapi import FastAPI

from hotspot_pages.application.dtos.common_dto import HealthResponse, RootResponse
from hotspot_pages.infrastructure.api.error_handlers import add_exception_handlers
from hotspot_pages.infrastructure.api.middlewares import add_default_middlewares
from hotspot_pages.infrastructure.api.routes.auth_routes import router as auth_router
from hotspot_pages.infrastructure.api.routes.hotspot_routes import router as hotspot_router
from hotspot_pages.infrastructure.api.routes.page_routes import router as page_router
from hotspot_pages.infrastructure.logging_config import setup_logging


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title="Hotspot Pages",
        version="0.1.0",
        description="""
        ## Hotspot Pages API

        Upload an image, place tooltip hotspots on it and share it through a
        public link. Editing is controlled by a secret per-page edit token.

        ### Features
        - **Pages**: Create a page, attach an image, rename it, read it publicly
        - **Hotspots**: Create, update and delete hotspots positioned as
          fractions (0-1) of the image width and height
        - **Quotas**: 10 hotspots per page for anonymous users, 10 across all
          owned pages on the free plan, unlimited on pro

        ### Edit token
        Every mutation needs the page's edit token in a header:
        ```
        X-Edit-Token: your-edit-token
        ```
        A bearer token (`Authorization: Bearer ...`) is optional and only
        selects which quota applies.

        ### Error Responses
        - **400 Bad Request**: Invalid request parameters or malformed data
        - **401 Unauthorized**: Missing edit token (or bearer token on /auth)
        - **402 Payment Required**: Hotspot limit reached (`reason` says which)
        - **403 Forbidden**: Wrong edit token, or the target does not exist
        - **404 Not Found**: Unknown page slug
        - **500 Internal Server Error**: Unexpected server error
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app)
    add_exception_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the Hotspot Pages API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "hotspot-pages", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(auth_router)
    app.include_router(page_router)
    app.include_router(hotspot_router)
    return app


app = create_app()
