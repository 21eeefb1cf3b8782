# beneficiary_api/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from beneficiary_api.configs import configs
from beneficiary_api.core.errors import BeneficiaryAPIError
from beneficiary_api.services.db import close_db, init_db
from beneficiary_api.routes import (
    areas,
    audit_logs,
    auth,
    beneficiaries,
    nes,
    redemptions,
    users,
)
from fastapi.middleware.cors import CORSMiddleware


# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app_settings = configs.get("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles startup and shutdown events for the application.
    Connects to MongoDB and initializes Beanie ODM.
    """
    logger.info("Application startup initiated...")
    try:
        await init_db()
        logger.info("MongoDB connection and Beanie initialization successful.")
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB or initialize Beanie: {e}")
        raise

    yield

    logger.info("Application shutdown initiated...")
    await close_db()
    logger.info("MongoDB connection closed.")


app = FastAPI(
    title=app_settings.get("project_name"),
    debug=app_settings.get("debug_mode"),
    lifespan=lifespan,  # Use the lifespan manager
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.get("cors_origins") or [],
    allow_credentials=True,  # Allow cookies to be included in requests
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BeneficiaryAPIError)
async def beneficiary_api_error_handler(request: Request, exc: BeneficiaryAPIError):
    logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include API routes
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(areas.router, prefix="/areas", tags=["Areas"])
app.include_router(beneficiaries.router, prefix="/beneficiaries", tags=["Beneficiaries"])
app.include_router(redemptions.router, prefix="/redemptions", tags=["Redemptions"])
app.include_router(nes.router, prefix="/nes", tags=["NES"])
app.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit Logs"])


@app.get("/")
async def read_index():
    return {"name": app_settings.get("project_name"), "status": "ok"}
