# MEDGRID REGISTRY GRID

# COMPONENT: FASTAPI APPLICATION ENTRY POINT
# REQUIREMENTS SATISFIED:
#   - API initialization and routing
#   - Middleware configuration (logging + CORS)
#   - AWS Lambda compatibility via Mangum
"""
medgrid/main.py

Assembles the FastAPI application for the registry grid backend.

Execution Order:
    1. Environment variables are loaded from .env
    2. The shared "medgrid" logger is configured
    3. FastAPI app is created
    4. Request/response logging middleware is attached
    5. CORS middleware is configured with the frontend allowlist
    6. API routers are mounted under the /api prefix
    7. The Mangum handler is created for AWS Lambda deployment

Run locally with ``uvicorn medgrid.main:app``.
"""
import os
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Response
from starlette.middleware.cors import CORSMiddleware
from mangum import Mangum

from medgrid.utils.logging import setup_logger
from medgrid.api.routers.grid import router as grid_router
from medgrid.api.routers.manufacturers import router as manufacturers_router
from medgrid.api.middleware.log_requests import RequestLogger

logger = setup_logger()

# -------------------------------------------------------------
# Constants
# -------------------------------------------------------------
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
ALLOWED_ORIGINS = [FRONTEND_ORIGIN]

# -------------------------------------------------------------
# Create the FastAPI app FIRST
# -------------------------------------------------------------
app = FastAPI(title="MedGrid Registry API")

# -------------------------------------------------------------
# Add middleware SECOND
# -------------------------------------------------------------
app.add_middleware(RequestLogger)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------------------
# Include Routers THIRD
# -------------------------------------------------------------
app.include_router(grid_router, prefix="/api")
app.include_router(manufacturers_router, prefix="/api")


@app.options("/{path:path}")
async def preflight_handler(path: str):
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": FRONTEND_ORIGIN,
            "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
            "Access-Control-Allow-Headers": "content-type,authorization",
        },
    )


@app.get("/health")
def health():
    return {"ok": True}


# -------------------------------------------------------------
# Create Lambda handler LAST
# -------------------------------------------------------------
handler = Mangum(app)
