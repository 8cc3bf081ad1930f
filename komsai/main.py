import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root regardless of where uvicorn is started
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from komsai.api.admin import router as admin_router
from komsai.api.auth import router as auth_router
from komsai.api.leaderboard import router as leaderboard_router
from komsai.api.push import router as push_router
from komsai.core.config import is_push_configured, settings
from komsai.core.database import engine, init_db
from komsai.core.rate_limit import limiter
from komsai.logging import setup_logging
from komsai.services.push import PushDispatcher

setup_logging(level=logging.INFO)
log = logging.getLogger("komsai")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


STATIC_DIR = _PROJ_ROOT / "static"
# Also try the working directory (uvicorn started elsewhere)
if not STATIC_DIR.is_dir():
    STATIC_DIR = Path.cwd() / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.dispatcher = PushDispatcher(settings)
    log.info("Web Push configured: %s", "yes" if is_push_configured() else "NO (set VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY in .env)")
    yield


app = FastAPI(
    title="Komsai Cup API",
    description="House leaderboard with push notifications for posted results",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("rate limit exceeded path=%s", request.url.path)
    return _error_response(request, 429, "Too many requests. Please wait a minute.")


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request."
    first = errs[0]
    loc = [str(part) for part in (first.get("loc") or []) if part != "body"]
    field = ".".join(loc)
    if first.get("type") == "missing":
        return f"Missing field: {field}." if field else "Missing request body."
    msg = first.get("msg") or "Invalid request."
    return f"{field}: {msg}" if field else msg


def _jsonable_errors(errs) -> list[dict]:
    # ctx may hold exception instances (e.g. from field validators)
    return [{k: v for k, v in e.items() if k in ("type", "loc", "msg")} for e in errs]


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    rid = getattr(request.state, "request_id", None)
    body = {"error": _validation_error_message(exc), "status_code": 422, "detail": _jsonable_errors(errs)}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=422, content=body)


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    response = _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=exc)
    return _error_response(request, 500, "Unexpected server error.")


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth_router)
app.include_router(push_router)
app.include_router(leaderboard_router)
app.include_router(admin_router)

if STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/sw.js", include_in_schema=False)
def service_worker():
    """Served from the root so the worker's scope covers the whole site."""
    sw_file = STATIC_DIR / "sw.js"
    if not sw_file.is_file():
        raise HTTPException(status_code=404, detail="sw.js not found.")
    return FileResponse(
        sw_file,
        media_type="application/javascript",
        headers={"Service-Worker-Allowed": "/", "Cache-Control": "no-cache"},
    )


@app.get("/health")
def health():
    db_status = "ok"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        log.warning("health: database check failed: %s", e)
        db_status = "error"
    return {"status": "ok", "database": db_status, "push_configured": is_push_configured()}
