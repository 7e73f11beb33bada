import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from posttags import __version__
from posttags.config import get_settings
from posttags.database import init_db
from posttags.hashtags.router import router as tags_router
from posttags.middleware import error_envelope_middleware, request_id_middleware

_OPENAPI_TAGS = [
    {
        "name": "Tags",
        "description": (
            "Read access to derived tag state: tags with their usage counters, "
            "posts per tag and tags per post. Tags are created and counted as a "
            "side effect of post writes; there is no write API here."
        ),
    },
    {
        "name": "Health",
        "description": "Liveness check.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.database_url)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="Post Tags Service",
        description=(
            "Hashtag and mention bookkeeping for short text posts: tags, "
            "post/tag associations and per-tag usage counters."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=_OPENAPI_TAGS,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)

    app.include_router(tags_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        """Lightweight liveness check. Does not hit the database."""
        return {"status": "ok", "service": "posttags"}

    return app


app = create_app()
