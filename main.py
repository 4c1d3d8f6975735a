from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import uvicorn  # noqa: E402
from apscheduler.schedulers.background import BackgroundScheduler  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.responses import FileResponse  # noqa: E402
from fastapi.staticfiles import StaticFiles  # noqa: E402

import models  # noqa: E402,F401  (registers tables on Base.metadata)
from database import init_db  # noqa: E402
from routers.auth import router as auth_router  # noqa: E402
from utils.mailer import Mailer  # noqa: E402
from utils.otp_service import otp_registry  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s - %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR", Path(__file__).resolve().parent / "public"))
OTP_PURGE_INTERVAL_MIN = int(os.getenv("OTP_PURGE_INTERVAL_MINUTES", "5"))


app = FastAPI(title="Student Auth Backend")

app.include_router(auth_router)


@app.on_event("startup")
def _connect_db():
    # An unreachable database at boot stops the server from starting.
    try:
        init_db()
    except Exception:
        logger.exception("Database connection error")
        raise


@app.on_event("startup")
def _check_mail_backend():
    # Reject a bad MAIL_BACKEND at boot rather than on the first request.
    try:
        Mailer()
    except ValueError:
        logger.exception("Mail configuration error")
        raise


@app.on_event("startup")
def _start_scheduler():
    # Only needed when OTP codes can expire.
    if not otp_registry.ttl_seconds:
        return
    sched = BackgroundScheduler(timezone=os.getenv("TZ", "UTC"))
    sched.add_job(
        otp_registry.purge_expired,
        "interval",
        minutes=OTP_PURGE_INTERVAL_MIN,
        id="purge_expired_otps",
        replace_existing=True,
    )
    sched.start()
    app.state._scheduler = sched


@app.on_event("shutdown")
def _stop_scheduler():
    sched = getattr(app.state, "_scheduler", None)
    if sched:
        sched.shutdown(wait=False)


def _page(name: str) -> FileResponse:
    path = PUBLIC_DIR / name
    logger.info("Serving: %s", path)
    return FileResponse(path, media_type="text/html")


@app.get("/")
def root():
    return _page("collage.html")


@app.get("/dashboard")
def dashboard():
    return _page("dashboard.html")


@app.get("/health")
def health():
    return {"status": "Backend running"}


# Registered last so the routes above take precedence.
if PUBLIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=PUBLIC_DIR), name="public")


if __name__ == "__main__":
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "3000"))
    logger.info("Server running on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port)
