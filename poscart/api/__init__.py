# poscart/api/__init__.py
from fastapi import FastAPI
from poscart.api.routers import carts, products
from poscart.api.routers.health import router as health_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="POS Cart Service",
        version="1.0.0",
    )

    app.include_router(health_router)
    app.include_router(carts.router)
    app.include_router(products.router)

    return app
