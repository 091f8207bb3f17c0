from __future__ import annotations

from fastapi import FastAPI

from .app.api.routers import router as api_router


app = FastAPI(title="Dynamic Pricing")

app.include_router(api_router)
