from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import importlib
import logging

from room_inventory.core.config import settings
from room_inventory.core.exceptions import setup_exception_handlers
from room_inventory.core.firebase_init import initialize_firebase, get_firebase_status

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Floors, rooms, equipment, maintenance and replacement needs, with an activity log",
    version=settings.APP_VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    logger.info("🚀 FastAPI startup event triggered")
    if not get_firebase_status()['available']:
        if initialize_firebase():
            logger.info("✅ Firebase initialized successfully")
        else:
            logger.warning("⚠️ Firebase initialization failed - store calls will fail until credentials are provided")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("⛔ FastAPI shutdown event triggered")


def safe_include_router(router_module_path: str, router_name: str = "router") -> bool:
    """Include a router, logging instead of crashing if its module fails to import"""
    try:
        module = importlib.import_module(router_module_path)
        app.include_router(getattr(module, router_name))
        logger.info(f"✅ Successfully included {router_module_path}.{router_name}")
        return True
    except Exception as e:
        logger.exception(f"❌ Failed to include {router_module_path}.{router_name}: {str(e)}")
        return False


routers_to_load = [
    ("room_inventory.routers.floors", "router"),
    ("room_inventory.routers.rooms", "router"),
    ("room_inventory.routers.equipment", "router"),
    ("room_inventory.routers.records", "maintenance_router"),
    ("room_inventory.routers.records", "replacement_router"),
    ("room_inventory.routers.activity_logs", "router"),
    ("room_inventory.routers.dashboard", "router"),
]

successful_routers = [
    f"{path}.{name}" for path, name in routers_to_load if safe_include_router(path, name)
]
logger.info(f"Loaded {len(successful_routers)}/{len(routers_to_load)} routers")


@app.get("/")
async def root():
    return {
        "message": f"{settings.APP_NAME} is running",
        "version": settings.APP_VERSION,
        "routers": successful_routers,
    }


@app.get("/health")
async def health_check():
    firebase_status = get_firebase_status()
    return {
        "status": "healthy" if firebase_status["available"] else "degraded",
        "firebase": firebase_status,
    }
