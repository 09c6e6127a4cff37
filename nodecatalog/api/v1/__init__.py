from fastapi import APIRouter
from .config import router as config_router
from .definitions import router as definitions_router
from .instances import router as instances_router

router = APIRouter(prefix="/api/v1")
router.include_router(config_router)
router.include_router(definitions_router)
router.include_router(instances_router)
