"""API v1 endpoints"""
from fastapi import APIRouter
from .endpoints import cases, reports, sla_config

api_router = APIRouter()
api_router.include_router(cases.router, prefix="/cases", tags=["cases"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(sla_config.router, tags=["configuration"])
