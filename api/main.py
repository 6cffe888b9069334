import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core import db, errors, log
from data_products import repository as data_products_repository
from data_products import router as data_products_router
from health import router as health_router

logger = logging.getLogger(__name__)

# Base path used by the catalog UI client; bare paths stay mounted too.
API_PREFIX = "/api/v1"


def cors_allow_origins() -> list[str]:
    raw = os.environ.get("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        if db.should_create_schema():
            await data_products_repository.create_schema()
            logger.info("data_products_schema_ready")
        yield
    finally:
        await db.close_pool()


log.configure_logging()

app = FastAPI(title="Data Product Catalog API", lifespan=lifespan)

# Allow the local frontend dev server to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

errors.install_handlers(app)

app.include_router(data_products_router.router, tags=["data-products"])
app.include_router(data_products_router.router, prefix=API_PREFIX, tags=["data-products"])
app.include_router(health_router.router, tags=["health"])
app.include_router(health_router.router, prefix=API_PREFIX, tags=["health"])


@app.get("/")
def root() -> dict:
    return {"message": "data-product-catalog api"}
