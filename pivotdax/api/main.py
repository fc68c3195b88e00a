"""
FastAPI application entry-point.
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pivotdax.api.routers import pivot_data
from pivotdax.core.config import get_settings

app = FastAPI(
    title="Pivot DAX API",
    version="0.1.0",
    description="Compiles pivot-table slices into DAX queries",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pivot_data.router, prefix="/api/pivotdata", tags=["Pivot"])


@app.get("/health")
def health():
    return {"status": "ok"}
