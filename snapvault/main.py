from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from snapvault.database import database
from snapvault.routers import admin, auth, categories, images
from snapvault.services.cloudinary import configure_cloudinary
import logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SnapVault API",
    description="Backend API for the SnapVault image gallery",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    redirect_slashes=False
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(categories.router, prefix="/api/v1/categories", tags=["categories"])
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(admin.router, prefix="/api/v1/images", tags=["admin"])
app.include_router(images.router, prefix="/api/v1/images", tags=["images"])

@app.on_event("startup")
async def startup_event():
    logger.info("Application starting up...")
    try:
        await database.connect()
        configure_cloudinary()
        logger.info("Application started successfully")
    except Exception as e:
        logger.error(f"Startup failed: {str(e)}")
        raise

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutting down...")
    await database.close()
    logger.info("Application shutdown complete")

@app.get("/")
async def root():
    return {"message": "SnapVault API is running"}
