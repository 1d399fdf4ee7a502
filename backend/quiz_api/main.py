"""FastAPI application factory and HTTP wiring.

`create_app` builds the application: it owns the `Database` lifecycle
(tables created at startup, engine disposed at shutdown), installs the
request-context middleware, maps every error to the response envelope
and mounts the resource routers under `{API_PREFIX}/{API_VERSION}`.

Endpoints implemented (default prefix /api/v1):
- POST /users/register, POST /users/login, GET /users
- PATCH /users/{id}, DELETE /users/{id}
- POST /questions, GET /questions, PATCH /questions/{id}, DELETE /questions/{id}
- POST /collections, GET /collections, PATCH /collections/{id}, DELETE /collections/{id}
- GET /, GET /health
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .database import Database
from .errors import QuizApiError
from .responses import send_error, send_successful
from .routers import collections, questions, users

logger = logging.getLogger("quiz_api.api")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


def _validation_messages(exc: RequestValidationError) -> list:
    out = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        out.append(f"{loc}: {msg}" if loc else msg)
    return out or ["Validation errors"]


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(QuizApiError)
    async def quiz_api_error_handler(request: Request, exc: QuizApiError):
        return send_error(exc.status_code, exc.messages)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        response = send_error(exc.status_code, [str(exc.detail)])
        for key, value in (exc.headers or {}).items():
            response.headers[key] = value
        return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return send_error(400, _validation_messages(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return send_error(500, ["Internal server error"])


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build a configured application instance."""
    settings = settings or Settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    db = Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.create_tables()
        logger.info("database ready url=%s prefix=%s", db.engine.url.render_as_string(hide_password=True), settings.api_root)
        yield
        db.dispose()

    app = FastAPI(title="Quiz API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db

    if settings.ALLOW_DEV_CORS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        request.state.request_id = req_id
        started = time.perf_counter()
        response: Response
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
            logger.exception(
                "request_failed %s",
                json.dumps(
                    {
                        "request_id": req_id,
                        "path": request.url.path,
                        "method": request.method,
                        "duration_ms": elapsed_ms,
                        "client": request.client.host if request.client else "unknown",
                    },
                    ensure_ascii=True,
                ),
            )
            raise
        response.headers["X-Request-ID"] = req_id
        for key, value in SECURITY_HEADERS.items():
            response.headers.setdefault(key, value)
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
        return response

    _register_error_handlers(app)

    for module in (users, questions, collections):
        app.include_router(module.router, prefix=settings.api_root)

    @app.get("/")
    def home():
        """Welcome message; also a cheap liveness probe for clients."""
        return send_successful(f"Quiz API, see {settings.api_root}")

    @app.get("/health")
    def health():
        """Lightweight health check for uptime monitoring."""
        return {"status": "ok"}

    return app


app = create_app()
