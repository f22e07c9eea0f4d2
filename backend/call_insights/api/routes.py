from fastapi import APIRouter
from .calls import router as calls_router

api_router = APIRouter()
api_router.include_router(calls_router, prefix="/admin/calls", tags=["calls"])
