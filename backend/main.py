from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import time

from db.database import init_db
from routers import receipts, streaks, achievements, fasting, shopping_lists

VERSION = "0.1.0"

# ── Logging setup ─────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Quiet noisy libraries unless we're in DEBUG
if LOG_LEVEL != "DEBUG":
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger("vitalog")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Vitalog v%s  LOG_LEVEL=%s  DB=%s  OCR_ENGINE=%s",
                VERSION, LOG_LEVEL, os.environ.get("DB_PATH", "(default)"),
                os.environ.get("OCR_ENGINE", "tesseract"))
    await init_db()
    yield


app = FastAPI(
    title="Vitalog — Wellness Tracker API",
    description="Activity streaks, achievements, fasting windows and receipt scanning",
    version=VERSION,
    lifespan=lifespan,
)

_cors_origins = os.environ.get("CORS_ORIGINS", "").strip()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins.split(",") if _cors_origins else ["*"],
    allow_credentials=bool(_cors_origins),  # only send credentials when origins are explicit
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(receipts.router,       prefix="/api/receipts",       tags=["receipts"])
app.include_router(shopping_lists.router, prefix="/api/shopping-lists", tags=["shopping-lists"])
app.include_router(streaks.router,        prefix="/api/streaks",        tags=["streaks"])
app.include_router(achievements.router,   prefix="/api/achievements",   tags=["achievements"])
app.include_router(fasting.router,        prefix="/api/fasting",        tags=["fasting"])


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed = (time.time() - start) * 1000
    if LOG_LEVEL == "DEBUG" or response.status_code >= 400:
        logger.log(
            logging.WARNING if response.status_code >= 400 else logging.DEBUG,
            "%s %s → %s (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
        )
    return response


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION}


@app.get("/api/diagnose")
async def diagnose():
    """Check that the OCR stack and data directory are usable on this host."""
    import shutil
    import subprocess

    results = {}

    # Tesseract binary
    if shutil.which("tesseract") is None:
        results["tesseract"] = {"ok": False, "error": "tesseract binary not found in PATH"}
    else:
        try:
            r = subprocess.run(["tesseract", "--version"], capture_output=True, text=True, timeout=5)
            results["tesseract"] = {"ok": r.returncode == 0, "version": r.stdout.split("\n")[0].strip()}
        except (OSError, subprocess.SubprocessError) as e:
            results["tesseract"] = {"ok": False, "error": str(e)}

    for name, module in (("pytesseract", "pytesseract"), ("pillow", "PIL"), ("numpy", "numpy")):
        try:
            __import__(module)
            results[name] = {"ok": True}
        except ImportError as e:
            results[name] = {"ok": False, "error": str(e)}

    try:
        import pillow_heif  # noqa: F401
        results["heic_support"] = {"ok": True}
    except ImportError:
        results["heic_support"] = {"ok": False, "error": "pillow-heif not installed — HEIC photos unsupported"}

    db_dir = os.path.dirname(os.environ.get("DB_PATH", "/data/vitalog.db")) or "."
    results["data_dir"] = {
        "ok": os.path.isdir(db_dir) and os.access(db_dir, os.W_OK),
        "path": db_dir,
    }

    # Only needed for OCR_ENGINE=claude; never expose key material
    key = os.environ.get("ANTHROPIC_API_KEY", "")
    engine = os.environ.get("OCR_ENGINE", "tesseract").lower()
    results["anthropic_key"] = {
        "ok": engine != "claude" or bool(key and key.startswith("sk-")),
        "set": bool(key),
    }

    return {"all_ok": all(v.get("ok") for v in results.values()), "checks": results}
