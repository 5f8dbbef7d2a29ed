from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import engine, Base
from .routers import pricing, services, operations, papers

logger = logging.getLogger("printdesk")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="PrintDesk Pricing",
    description=f"Print-shop pricing engine for {settings.COMPANY_NAME}",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(pricing.router, prefix="/api")
app.include_router(services.router, prefix="/api")
app.include_router(operations.router, prefix="/api")
app.include_router(papers.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "printdesk-pricing"}


@app.on_event("startup")
def auto_seed():
    """Auto-seed services, paper stock and operation norms on first run."""
    from .database import SessionLocal
    db = SessionLocal()
    try:
        seeded = pricing.seed_defaults(db)
        logger.info("Seeded pricing defaults: %s", seeded)
    finally:
        db.close()
