from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pool_pricing.api.deps import get_runtime
from pool_pricing.api.routers.events import router as events_router
from pool_pricing.api.routers.pools import router as pools_router
from pool_pricing.api.routers.protocol import router as protocol_router
from pool_pricing.api.routers.tokens import router as tokens_router
from pool_pricing.api.routers.volume import router as volume_router
from pool_pricing.shared.config import get_settings

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # ConfigurationError propagates here and the server refuses to start.
    runtime = get_runtime()
    runtime.start()
    logger.info("main: started")
    try:
        yield
    finally:
        runtime.shutdown()
        logger.info("main: stopped")


app = FastAPI(title="Pool Pricing API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tokens_router)
app.include_router(pools_router)
app.include_router(volume_router)
app.include_router(protocol_router)
app.include_router(events_router)
