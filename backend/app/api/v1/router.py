from fastapi import APIRouter

from app.api.v1 import sla

api_router = APIRouter()

api_router.include_router(sla.router, prefix="/sla", tags=["sla"])
