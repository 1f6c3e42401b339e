from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logging import setup_logging
from core.config import settings
from db.session import engine
from models.base import Base

# Import all models to register them with SQLAlchemy BEFORE any queries
from models.order import Order, OrderItem
from models.risk import RiskAnalysis
from models.store import StoreSettings, TrialStatus

from controllers.dashboard import router as dashboard_router
from controllers.health import router as health_router
from controllers.orders import router as orders_router
from controllers.realtime import router as realtime_router
from controllers.risk import router as risk_router
from controllers.settings import router as settings_router
from controllers.webhooks import router as webhooks_router

from services.order_pipeline import OrderPipeline
from services.realtime import ConnectionRegistry


setup_logging()

app = FastAPI(title="Shopify Order Risk Guard (webhooks + scoring + alerts)")

# --- CORS middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- DB tables ---
Base.metadata.create_all(bind=engine)

# --- Routers ---
app.include_router(dashboard_router)
app.include_router(health_router)
app.include_router(orders_router)
app.include_router(realtime_router)
app.include_router(risk_router)
app.include_router(settings_router)
app.include_router(webhooks_router)

# --- Internal TTL cache store (in-memory) ---
# Controllers/services can use: from helpers import cache_get/cache_set
app.state.ttl_cache = {}  # dict[str, (expires_at, data)]

# --- Realtime registry + webhook pipeline ---
# The registry is shared by the /ws endpoint (attach/detach) and the pipeline (broadcast)
app.state.connections = ConnectionRegistry()
app.state.pipeline = OrderPipeline(registry=app.state.connections)
