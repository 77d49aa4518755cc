# storefront/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from storefront.data.database import Base, engine
from storefront.api.routers import (
    addresses,
    admin_products,
    carts,
    favorites,
    health,
    orders,
    products,
    try_on,
    users,
)
from storefront.domain.errors import ServiceError
from storefront.utils.logging import get_logger

# all models have to be registered on Base before create_all
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Creating tables: {sorted(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise


async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    init_db()

    app = FastAPI(
        title="Storefront",
        version="1.0.0",
    )

    app.add_exception_handler(ServiceError, service_error_handler)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(addresses.router)
    app.include_router(products.router)
    app.include_router(admin_products.router)
    app.include_router(carts.router)
    app.include_router(favorites.router)
    app.include_router(orders.router)
    app.include_router(orders.admin_router)
    app.include_router(try_on.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
