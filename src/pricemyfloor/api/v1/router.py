"""
Main API router for v1 endpoints
"""
from fastapi import APIRouter

from pricemyfloor.api.v1.endpoints import admin, applications, auth, brands, functions, retailer

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(functions.router, tags=["functions"])
api_router.include_router(brands.router, tags=["brands"])
api_router.include_router(applications.router, tags=["applications"])
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(retailer.router, tags=["retailer"])
api_router.include_router(admin.router, tags=["admin"])
