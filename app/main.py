from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from app.core.config import settings
from app.core.logging import setup_logging
from app.domains.auth.router.auth_router import router as auth_router
from app.domains.devices.router.device_router import router as device_router
from app.domains.rfi.router.daily_work_router import router as daily_work_router
from app.domains.rfi.router.objection_router import router as objection_router
from app.domains.rfi.router.suggestion_router import router as suggestion_router


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="SiteOps API",
        version="1.0.0",
        description="Single device login and chainage matching for site operations",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {"name": "Auth", "description": "Session login / logout"},
            {"name": "Devices", "description": "Registered devices and single device login administration"},
            {"name": "Daily Works", "description": "RFI records"},
            {"name": "Objections", "description": "Objections, chainages and RFI suggestions"},
        ]
    )

    # cookie session (signed with SECRET_KEY)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(device_router)

    # RFI / objections
    app.include_router(daily_work_router)
    app.include_router(suggestion_router)
    app.include_router(objection_router)

    @app.get("/")
    def root():
        return {"message": "SiteOps API is running"}

    return app


app = create_app()

# local entry point
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
