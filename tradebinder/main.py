from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tradebinder.api import cards_router, catalog_router, health_router
from tradebinder.config import settings
from tradebinder.db.database import init_db
from tradebinder.models.failure import KnownError
from tradebinder.services.catalog import get_catalog_source


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield
    await get_catalog_source().aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("tradebinder"),
    lifespan=lifespan,
)

app.include_router(cards_router)
app.include_router(catalog_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render classified failures with their status code and failure detail."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "failure": exc.to_detail().model_dump(mode="json"),
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are client errors: 400, not 422."""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(errors)},
    )
