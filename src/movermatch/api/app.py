# src/movermatch/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and CORS policy. Matching logic lives in
`movermatch.matching`; routes only translate HTTP to `SearchRequest` and back.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from movermatch.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="MoverMatch API", version="0.1.0")

# Browsers calling from the web shell need CORS. Configure via env:
# - MOVERMATCH_CORS_ORIGINS="https://app.example.com,http://localhost:5173"
cors_origins = [s.strip() for s in os.getenv("MOVERMATCH_CORS_ORIGINS", "").split(",") if s.strip()]
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(router)
