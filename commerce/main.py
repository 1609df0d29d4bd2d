# commerce/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from commerce.api.routers import admin, carts, coupons, health, orders, payments
from commerce.data.database import Base, engine
from commerce.utils.logging import get_logger

# import wszystkich modeli przed create_all
import commerce.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db(bind=engine) -> None:
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=bind)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Storefront Commerce Core",
        version="1.0.0",
        lifespan=lifespan if with_lifespan else None,
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(coupons.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(admin.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
