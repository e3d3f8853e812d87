"""
Zealous Health storefront API.

Run with ``python -m zealous.server`` from the backend directory, or
``uvicorn zealous.server:app``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import Base, engine
from .envelope import install_exception_handlers, success
from .routes import routers
from .seed import seed_sample_data

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


# ==================== APP LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    print(f"🚀 Starting {settings.APP_NAME} Server...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("✅ Database initialized")

    if settings.SEED_SAMPLE_DATA:
        await seed_sample_data()

    yield

    # Shutdown
    print(f"👋 Shutting down {settings.APP_NAME} Server...")
    await engine.dispose()


# ==================== FASTAPI APP ====================

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Health products storefront backend",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_exception_handlers(app)

for router in routers:
    app.include_router(router)


@app.get("/api/health")
async def health_check():
    return success(200, {"status": "healthy", "app": settings.APP_NAME, "version": settings.APP_VERSION})


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn

    print("""
    ╔═══════════════════════════════════════════════════════════╗
    ║                                                           ║
    ║     🌿 Zealous Health - Storefront API 🌿                 ║
    ║                                                           ║
    ║     Server running at: http://localhost:8000              ║
    ║     API Docs:          http://localhost:8000/docs         ║
    ║     Health Check:      http://localhost:8000/api/health   ║
    ║                                                           ║
    ╚═══════════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "zealous.server:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
