# repairdesk/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from . import admin, config
from .context import AppContext
from .database import Base, make_engine, make_session_factory
from .errors import FormError, InvariantViolation, NotFound, PermissionDenied, RepairDeskError, SheetError
from .routers import auth, dashboard, equipment, intake, requests, workshops

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    FormError: 400,
    PermissionDenied: 403,
    NotFound: 404,
    InvariantViolation: 409,
    SheetError: 502,
}


async def repairdesk_error_handler(request: Request, exc: RepairDeskError):
    status_code = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(
    settings: Optional[config.Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or config.settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = make_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    context = AppContext(settings, make_session_factory(engine), transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await context.init()
        yield
        await context.teardown()

    app = FastAPI(title="Repair Desk API", lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY)
    app.add_exception_handler(RepairDeskError, repairdesk_error_handler)

    # Routers
    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(equipment.router)
    app.include_router(workshops.router)
    app.include_router(requests.router)
    app.include_router(intake.router)
    # SQLAdmin
    admin.setup_admin(app, engine, context, settings.SECRET_KEY)
    return app


app = create_app()
