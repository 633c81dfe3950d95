# floortrack/api/v1/api.py
from fastapi import APIRouter
from floortrack.api.v1.endpoints import admin, catalog, planner, supervisor, technician, users

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])

api_router.include_router(catalog.products_router, prefix="/products", tags=["Products"])
api_router.include_router(catalog.processes_router, prefix="/processes", tags=["Processes"])
api_router.include_router(catalog.operations_router, prefix="/operations", tags=["Operations"])

api_router.include_router(technician.router, prefix="/technician", tags=["Technician"])
api_router.include_router(supervisor.router, prefix="/supervisor", tags=["Supervisor"])
api_router.include_router(planner.router, prefix="/planner", tags=["Planner"])
