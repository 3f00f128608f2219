# sopopped/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from sopopped.core.config import get_settings
from sopopped.core.errors import register_exception_handlers
from sopopped.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from sopopped.models import user as _user_models  # noqa: F401
from sopopped.models import product as _product_models  # noqa: F401
from sopopped.models import cart as _cart_models  # noqa: F401
from sopopped.models import order as _order_models  # noqa: F401
from sopopped.models import session as _session_models  # noqa: F401


# Routers
from sopopped.routers.auth import router as auth_router
from sopopped.routers.products import router as products_router
from sopopped.routers.cart import router as cart_router
from sopopped.routers.orders import router as orders_router
from sopopped.routers.admin import router as admin_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
    """
    logger.info("Startup: connecting to the storefront database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error("Startup: DB connection FAILED: %s", e)
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Cookies travel cross-origin from the storefront pages
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(products_router, prefix=settings.API_PREFIX)
app.include_router(cart_router, prefix=settings.API_PREFIX)
app.include_router(orders_router, prefix=settings.API_PREFIX)
app.include_router(admin_router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "sopopped-backend"}
