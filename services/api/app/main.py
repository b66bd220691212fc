"""Storefront API service entrypoint."""

from fastapi import FastAPI

from services.api.app.db.init_db import init_db
from services.api.app.error_handlers import register_error_handlers
from services.api.app.logging_config import configure_logging
from services.api.app.routers.admin import router as admin_router
from services.api.app.routers.auth import router as auth_router
from services.api.app.routers.cart import router as cart_router
from services.api.app.routers.order import router as order_router
from services.api.app.routers.payment import router as payment_router
from services.api.app.routers.user import router as user_router

configure_logging()

app = FastAPI(title="Storefront API")

register_error_handlers(app)

app.include_router(auth_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(user_router)
app.include_router(admin_router)


@app.on_event("startup")
def _startup() -> None:
    init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
