from fastapi import APIRouter
from app.api.v2 import (
    scheduling,
    inspector,
    inspections,
    documents,
)

api_router = APIRouter()

# Include all v2 routers
api_router.include_router(scheduling.router, prefix="/scheduling", tags=["scheduling"])
api_router.include_router(inspector.router, prefix="/inspector", tags=["inspector"])
api_router.include_router(inspections.router, prefix="/inspections", tags=["inspections"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
