"""FastAPI application factory with middleware, routers, and lifespan."""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .config import settings, setup_logging
from .contacts.routes import router as contacts_router
from .contacts.store import create_contact_store
from .pages import router as pages_router

logger = logging.getLogger(__name__)

# Template and static file paths (frontend/ is at project root, sibling of backend/)
_BASE_DIR = Path(__file__).parent.parent.parent
_TEMPLATE_DIR = _BASE_DIR / "frontend" / "templates"
_STATIC_DIR = _BASE_DIR / "frontend" / "static"

VERSION = "1.0.0"

_startup_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    global _startup_time
    _startup_time = time.time()

    setup_logging()
    app.state.store = create_contact_store(settings)

    yield


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "text/html" in accept and "application/json" not in accept


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=VERSION,
        lifespan=lifespan,
    )

    # --- Exception handlers ---
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            templates = app.state.templates
            return templates.TemplateResponse(request, "404.html", {}, status_code=404)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Malformed bodies are client errors like the missing-field case: 400 {error}
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        logger.info("Rejected %s %s: %s", request.method, request.url.path, errors)
        return JSONResponse({"error": f"{field}: {message}" if field else message}, status_code=400)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        # Content negotiation: browsers get the error page, API clients get JSON
        if _wants_html(request):
            templates = app.state.templates
            return templates.TemplateResponse(request, "500.html", {}, status_code=500)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    # --- Middleware stack (LIFO: last added = outermost) ---

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    if settings.trusted_hosts_list != ["*"]:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.trusted_hosts_list,
        )

    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        return response

    # --- Templates & static files ---
    app.state.templates = Jinja2Templates(directory=str(_TEMPLATE_DIR))
    app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")

    # --- Routers ---
    # Contact download routes first: the page route's {contact_id:path} would swallow /vcard and /qr.png.
    app.include_router(contacts_router)
    app.include_router(pages_router)

    # --- Health check ---
    @app.get("/health")
    def health(request: Request):
        store = request.app.state.store
        store_status = "ok" if store.ping() else "unreachable"

        status = "ok" if store_status == "ok" else "degraded"
        uptime = round(time.time() - _startup_time, 1) if _startup_time else 0.0

        return {
            "status": status,
            "store": store_status,
            "backend": store.backend,
            "version": VERSION,
            "uptime_seconds": uptime,
        }

    return app


app = create_app()
