# main.py (raíz)
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import redis
from starlette.exceptions import HTTPException
import uvicorn

from lms.config.database import connect_mongo, connect_redis
from lms.config.settings import Settings
from lms.repositories.mongo_repository import RecordStore
from lms.repositories.redis_repository import SessionRepository
from lms.api.middleware.session_middleware import session_middleware
from lms.api.routes.auth_routes import router as auth_router
from lms.api.routes.course_routes import router as course_router
from lms.api.routes.progress_routes import router as progress_router
from lms.api.routes.users import router as users_router
from lms.utils.errors import ServiceError
from lms.utils.responses import envelope, error_body

logger = logging.getLogger("lms")


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = []
        for err in exc.errors():
            field = ".".join(str(p) for p in err.get("loc", ())[1:]) or "body"
            messages.append(f"{field}: {err.get('msg')}")
        return JSONResponse(status_code=400, content=error_body("; ".join(messages) or "Invalid request"))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        # incluye cascadas abortadas: al cliente solo le llega un error opaco
        logger.exception(f"Error no controlado en {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=error_body("Server Error"))


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    redis_client: Optional[redis.Redis] = None,
) -> FastAPI:
    """
    Arma la app. Las conexiones que no se inyectan se abren en el arranque
    (lifespan) y se cierran al apagar; las inyectadas son del que llama.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        opened_store = opened_redis = None
        if app.state.store is None:
            app.state.store = opened_store = connect_mongo(settings)
        if app.state.sessions is None:
            opened_redis = connect_redis(settings)
            app.state.sessions = SessionRepository(opened_redis, settings.session_ttl_seconds)
        try:
            yield
        finally:
            if opened_store is not None:
                opened_store.close()
            if opened_redis is not None:
                opened_redis.close()

    app = FastAPI(title="LMS API", version="1.0.0",
                  description="Catálogo de cursos, inscripciones y progreso.",
                  lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.sessions = SessionRepository(redis_client, settings.session_ttl_seconds) if redis_client is not None else None

    # Registrar middleware de sesión (lee Authorization / X-Session-Id y resuelve userId en Redis)
    app.middleware("http")(session_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    @app.get("/api/health", tags=["Health"])
    def health():
        return envelope(message="✅ LMS API is up and running.",
                        timestamp=datetime.now(timezone.utc).isoformat())

    app.include_router(auth_router, prefix="/api")
    app.include_router(course_router, prefix="/api")
    app.include_router(progress_router, prefix="/api")
    app.include_router(users_router, prefix="/api")
    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
