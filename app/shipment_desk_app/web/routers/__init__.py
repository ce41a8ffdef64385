from fastapi import APIRouter

from shipment_desk_app.web.routers.fields import router as fields_router
from shipment_desk_app.web.routers.health import router as health_router
from shipment_desk_app.web.routers.imports import router as imports_router
from shipment_desk_app.web.routers.shipments import router as shipments_router


router = APIRouter()
router.include_router(health_router)
router.include_router(fields_router)
router.include_router(imports_router)
router.include_router(shipments_router)
