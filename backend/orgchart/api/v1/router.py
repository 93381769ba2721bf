from fastapi import APIRouter

from orgchart.api.v1.endpoints import changes, commission, employees, health, hierarchy

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(employees.router)
api_router.include_router(hierarchy.router)
api_router.include_router(changes.router)
api_router.include_router(commission.router)
