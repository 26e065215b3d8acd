# barber_series/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from barber_series.config import get_settings
from barber_series.db import create_db_and_tables
from barber_series.routers import appointments_routes, auth_routes, cron_routes, series_routes, users_routes

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    create_db_and_tables()
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Barber Series API", lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(series_routes.router)
app.include_router(appointments_routes.router)
app.include_router(cron_routes.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
