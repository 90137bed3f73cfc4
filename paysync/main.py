# paysync/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from dotenv import load_dotenv

# ---------------------------------------------
# LOAD ENVIRONMENT VARIABLES
# ---------------------------------------------
load_dotenv()

from paysync.config import settings
from paysync.config.settings import validate_settings
from paysync.logging_config import get_logger
from paysync.middleware import request_id_middleware

# ---------------------------------------------
# IMPORT ROUTERS
# ---------------------------------------------
from paysync.routers import (
    health,
    razorpay_webhooks,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    for issue in validate_settings(settings):
        logger.warning("configuration_issue", issue=issue)
    yield

# ---------------------------------------------
# APP INIT
# ---------------------------------------------
app = FastAPI(
    title="paysync",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.middleware("http")(request_id_middleware)

# ---------------------------------------------
# ROUTERS
# ---------------------------------------------

# Health
app.include_router(health.router, prefix="/health", tags=["Health"])

# Webhooks
app.include_router(razorpay_webhooks.router, prefix="/v1/webhooks", tags=["Razorpay Webhooks"])


# ---------------------------------------------
# ROOT ENDPOINT
# ---------------------------------------------
@app.get("/")
def root():
    return {"message": "paysync is running"}
