from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from database import Base, SessionLocal, engine, settings
from api import display, queue, stats, presence
from core.rotation_engine import RotationEngine
from core.triggers import build_scheduler

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: 建立資料表、確保 Display 槽位存在、啟動排程
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        RotationEngine.ensure_slot(db)
    finally:
        db.close()

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler(settings)
        scheduler.start()
        logger.info("Rotation scheduler started")
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        logger.info("Stop Server")


app = FastAPI(
    title="Featured Rotation API",
    description="Daily featured item rotation with deduplicated engagement stats",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(display.router)
app.include_router(queue.router)
app.include_router(stats.router)
app.include_router(presence.router)


@app.get("/")
def root():
    return {"message": "Featured Rotation API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
