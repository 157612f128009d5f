# main.py

import os
import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from repos.database import init_models
from api.health import router as health_router
from api.webhooks import router as webhook_router
from api.leads import router as leads_router
from api.orders import router as orders_router
from api.balance import router as balance_router
from modules.assistant.orchestrator import get_registry
from modules.documents.config import PDF_TEMP_DIR
from modules.messaging.evolution_client import get_evolution_client
from modules.notifications import run_notification_sweep
from modules.notifications.config import NOTIFICATION_SWEEP_SECONDS
from utils.env import validate_environment, is_production

# Set up clean logging format
logging.basicConfig(format='%(asctime)s [%(levelname)s] %(message)s',
                    level=logging.INFO)
# Create logger for this module
logger = logging.getLogger(__name__)

# Log startup
logger.info("=" * 60)
logger.info("OSZap WhatsApp Assistant Starting")
logger.info(f"Environment: {'Production' if is_production() else 'Development'}")
logger.info(f"Evolution API: {os.getenv('EVOLUTION_API_URL', 'Not set')}")
logger.info(f"Instance: {os.getenv('EVOLUTION_INSTANCE_NAME', 'OSZap')}")
logger.info("=" * 60)

app = FastAPI(title="OSZap")

app.include_router(health_router)
app.include_router(webhook_router)
app.include_router(leads_router)
app.include_router(orders_router)
app.include_router(balance_router)

# Generated PDFs are served from /temp/<file>
os.makedirs(PDF_TEMP_DIR, exist_ok=True)
app.mount("/temp", StaticFiles(directory=PDF_TEMP_DIR), name="temp")

scheduler = AsyncIOScheduler(timezone="UTC")


@app.on_event("startup")
async def on_startup():
    validate_environment()
    await init_models()

    registry = get_registry()
    logger.info(f"🔧 {len(registry.names)} assistant tools registered")

    scheduler.add_job(run_notification_sweep,
                      'interval',
                      seconds=NOTIFICATION_SWEEP_SECONDS,
                      id="notification_sweep",
                      max_instances=1,
                      coalesce=True,
                      replace_existing=True)
    scheduler.start()
    logger.info(f"Scheduled notification sweep every {NOTIFICATION_SWEEP_SECONDS}s")


@app.on_event("shutdown")
async def on_shutdown():
    if scheduler.running:
        scheduler.shutdown(wait=False)
    await get_evolution_client().aclose()
    logger.info("OSZap stopped")
