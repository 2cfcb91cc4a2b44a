# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.cache import CatalogCache
from app.core.config import get_settings
from app.database import create_db_and_tables

# Table modules must be imported before create_all()
from app.models import cart, order, product, review, slot, user, wishlist  # noqa: F401
from app.routers import admin_stats, orders, products, reviews, slots, users
from app.routers import cart as cart_routes
from app.routers import wishlist as wishlist_routes

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ROUTERS = (
    products.router,
    cart_routes.router,
    slots.router,
    orders.router,
    reviews.router,
    wishlist_routes.router,
    users.router,
    admin_stats.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create missing tables, then open the catalog cache client
    shared through app.state. Shutdown: close that client.
    """
    try:
        create_db_and_tables()
    except Exception:
        logger.exception("Database unreachable at startup")
        raise
    logger.info("Database ready")

    app.state.catalog_cache = CatalogCache.from_url(
        settings.REDIS_URL,
        ttl_seconds=settings.CATALOG_CACHE_TTL_SECONDS,
    )
    yield
    app.state.catalog_cache.client.close()


app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in ROUTERS:
    app.include_router(router, prefix=settings.API_V1_STR)


@app.get("/")
def health():
    return {"status": "ok", "service": "modulo-storefront"}
