import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vitrix.config import get_settings
from vitrix.infrastructure.database import engine, initialize_database
from vitrix.interfaces.api.dependencies import open_push_gateway
from vitrix.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the tables and the push gateway, release both on shutdown."""

    initialize_database()
    app.state.push_gateway = open_push_gateway()
    yield
    if app.state.push_gateway is not None:
        await app.state.push_gateway.aclose()
    engine.dispose()


async def validation_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Report malformed request bodies as ``400 Bad Request``."""

    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    messages = [
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
        for error in errors
    ]
    logger.info("Rejected invalid request: %s", "; ".join(messages))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "; ".join(messages) or "Invalid request", "errors": jsonable_encoder(errors)},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title="Vitrix Notify", lifespan=lifespan)

    # Browser clients (admin dashboard, email tracking pages) call from any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.options("/{path:path}", include_in_schema=False)
    def preflight(path: str) -> Response:
        return Response(status_code=status.HTTP_200_OK)

    register_routes(app)
    return app


app = create_app()
