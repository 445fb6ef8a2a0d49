"""
Cafeteria — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from cafeteria.api import auth, events, health, orders, products, reports
from cafeteria.core.broadcast import close_broadcaster, get_broadcaster
from cafeteria.core.config import get_settings
from cafeteria.core.redis_client import close_redis
from cafeteria.db.database import AsyncSessionLocal, Base, engine
from cafeteria.db.user_ops import ensure_bootstrap_admin
from cafeteria.middleware.auth import JWTAuthMiddleware

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables and the broadcast hub
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    get_broadcaster()
    async with AsyncSessionLocal() as db:
        if await ensure_bootstrap_admin(db, settings.BOOTSTRAP_ADMIN_USERNAME, settings.BOOTSTRAP_ADMIN_PASSWORD):
            logger.info("Bootstrap admin '%s' created", settings.BOOTSTRAP_ADMIN_USERNAME)
    yield
    # Shutdown
    await close_broadcaster()
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Cafeteria POS",
    description="Point of sale and kitchen display: atomic stock-checked checkout with live order fanout.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

# ── Auth (admin routes only) ──────────────────────────────────────────────────
app.add_middleware(JWTAuthMiddleware)

# ── CORS (added last so it wraps the auth responses too) ──────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Prometheus Metrics ────────────────────────────────────────────────────────
if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(orders.router)
app.include_router(events.router)
app.include_router(products.router)
app.include_router(auth.router)
app.include_router(reports.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
