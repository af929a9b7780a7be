from __future__ import annotations

from fastapi import FastAPI

from .routes_cart import router


def create_app() -> FastAPI:
    app = FastAPI(title="Cart Ledger", version="1.0.0")
    app.include_router(router)
    return app


__all__ = ["create_app", "router"]
