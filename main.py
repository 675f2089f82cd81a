# ================================================================
# SafetyHub — Backend
# Training records, user profiles and expiry reminders
# ================================================================

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

import datetime
import logging
import os
import sqlite3

from app.accounts import register_account_routes
from app.accounts.models import DB_PATH
from app.training import register_training_routes
from app.reminders import register_reminder_routes, init_reminder_scheduler
from app.reminders.scheduler_jobs import shutdown_reminder_scheduler

# ================================================================
# LOGGING
# ================================================================

logging.basicConfig(
    level=os.environ.get("SAFETYHUB_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("safetyhub")

# ================================================================
# FASTAPI APP
# ================================================================

safety_app = FastAPI(title="SafetyHub")
app = safety_app
safety_app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SAFETYHUB_SESSION_SECRET", "safetyhub-dev-secret"),
)

register_account_routes(app)
register_training_routes(app)
register_reminder_routes(app)


@app.on_event("startup")
async def _startup():
    if init_reminder_scheduler():
        logger.info("[SafetyHub] Background reminder jobs scheduled")


@app.on_event("shutdown")
async def _shutdown():
    shutdown_reminder_scheduler()


# ================================================================
# HEALTH & PING
# ================================================================

@app.get("/api/ping")
async def api_ping():
    return {"ok": True, "ts": datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")}


@app.get("/api/health")
async def api_health():
    try:
        conn = sqlite3.connect(DB_PATH, timeout=5)
        records = conn.execute("SELECT COUNT(*) FROM training_records").fetchone()[0]
        conn.close()
    except sqlite3.Error as e:
        logger.error(f"[SafetyHub] Health check failed: {e}")
        return {"ok": False, "db_connected": False, "error": str(e)}
    return {"ok": True, "db_connected": True, "training_records": records}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
