"""API router aggregation."""

from fastapi import APIRouter

from noteapp.api.v1 import auth, notes

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(notes.router, prefix="/notes", tags=["Notes"])
