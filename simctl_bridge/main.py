from contextlib import asynccontextmanager
from fastapi import FastAPI

from simctl_bridge.api.routes import simulator_routes
from simctl_bridge.config.settings import settings
from simctl_bridge.core.logging import logger

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"simctl bridge starting up (xcrun: {settings.XCRUN_PATH})")
    yield
    logger.info("simctl bridge shutting down...")

app = FastAPI(title="simctl bridge", version="1.0.0", lifespan=lifespan)

app.include_router(simulator_routes.router)

@app.get("/health")
async def health():
    return {"status": "ok"}
