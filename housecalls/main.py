import logging
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from .routers import payments
from .db import init_db
from .config import settings
from .exception_handlers import register_exception_handlers
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Medical Appointment API"

app = FastAPI(title="Alafia Housecalls Payments")

# CORS - production origins come from ALLOWED_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(payments.router)


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def root():
    return "<h1>Welcome to Alafia Housecalls</h1><p>Your mobile hospital</p>"


@app.get("/health")
async def health():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
    }


@app.on_event("startup")
async def on_startup():
    # create missing tables; migrations are out of scope here
    await init_db()
    if not settings.paystack_webhook_secret:
        logger.error("PAYSTACK_WEBHOOK_SECRET is not set; all webhooks will be rejected")
    logger.info("Housecalls backend ready (env=%s)", settings.env)

if __name__ == "__main__":
    uvicorn.run("housecalls.main:app", host=settings.app_host, port=settings.app_port, reload=(settings.env != "production"))
