from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
import os
import time
import logging
import contextvars
from logging.handlers import TimedRotatingFileHandler

from cockpit.core import config
from cockpit.core.config import LOG_LEVEL, LOG_DIR, CORS_ALLOW_ORIGINS, check_required_config
from cockpit.core.database import Base, engine
from cockpit.core.errors import CockpitError
from cockpit.models import profile, summary  # noqa: F401  registers tables
from cockpit.api import auth, dashboard, profiles, emails, summaries


# Logging Setup
os.makedirs(LOG_DIR, exist_ok=True)

request_id_var = contextvars.ContextVar("request_id", default="-")
class ReqIdFilter(logging.Filter):
    def filter(self, record): record.request_id = request_id_var.get("-"); return True

log_formatter = logging.Formatter("%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s")

# File Handler (Rotates daily at midnight, keeps 30 days)
file_handler = TimedRotatingFileHandler(os.path.join(LOG_DIR, "cockpit.log"), when="midnight", interval=1, backupCount=30)
file_handler.setFormatter(log_formatter)
file_handler.addFilter(ReqIdFilter())

# Console Handler
console_handler = logging.StreamHandler()
console_handler.setFormatter(log_formatter)
console_handler.addFilter(ReqIdFilter())

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    handlers=[file_handler, console_handler]
)

logger = logging.getLogger("sales-cockpit")

# Create Tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Sales Cockpit API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True
)

# Middleware for Request ID
@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    token = request_id_var.set(os.urandom(6).hex())
    start = time.time()
    try:
        return await call_next(request)
    except Exception as e:
        logger.error("Unhandled error: %s", e, exc_info=True)
        return PlainTextResponse(status_code=500, content="Internal Server Error")
    finally:
        logger.info("%s %s done in %d ms", request.method, request.url.path, int((time.time()-start)*1000))
        request_id_var.reset(token)

@app.exception_handler(CockpitError)
async def cockpit_error_handler(request: Request, exc: CockpitError):
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.code, exc.message)
    else:
        logger.info("%s: %s", exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "detail": exc.message})

@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"error": "invalid_request", "detail": str(exc)})

@app.on_event("startup")
async def startup_event():
    # Refuse to serve without signing secrets
    check_required_config()

@app.get("/healthz")
def healthz():
    return {
        "ok": True,
        "service": "sales-cockpit",
        "embed_configured": bool(config.METABASE_SITE_URL and config.METABASE_SECRET_KEY),
    }

# Include Routers
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(profiles.router)
app.include_router(emails.router)
app.include_router(summaries.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("cockpit.main:app", host="0.0.0.0", port=8000, reload=True)
