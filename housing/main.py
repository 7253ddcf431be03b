from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from housing.core.config import settings
from housing.core.database import SessionLocal
from housing.core.exceptions import register_exception_handlers
from housing.core.logging import setup_logging
from housing.api.routes.units import router as units_router
from housing.api.routes.residents import router as residents_router
from housing.api.routes.occupancy import router as occupancy_router
from housing.api.routes.imports import router as imports_router
from housing.api.routes.sectors import router as sectors_router
from housing.api.routes.notifications import router as notifications_router
from housing.api.routes.reports import router as reports_router
from housing.api.routes.ocr import router as ocr_router

setup_logging()

# 1) Create the app FIRST
app = FastAPI(title="Compound Housing Backend")

# 2) Add CORS Middleware BEFORE routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# 3) Include routers AFTER app is created
app.include_router(units_router)
app.include_router(residents_router)
app.include_router(occupancy_router)
app.include_router(imports_router)
app.include_router(sectors_router)
app.include_router(notifications_router)
app.include_router(reports_router)
app.include_router(ocr_router)

# Scanned images when no S3 bucket is configured
if not settings.s3_configured:
    Path(settings.UPLOADS_DIR).mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOADS_DIR), name="uploads")


# 4) Health check endpoints
@app.get("/health")
def health():
    return {"ok": True, "service": "housing"}


@app.get("/db-health")
def db_health():
    db = SessionLocal()
    try:
        db.execute(text("select 1"))
        return {"ok": True, "db": "connected"}
    finally:
        db.close()
