from fastapi import APIRouter
from leave_system.routers import admin, auth, leave, users

# Centralized API router hub; main.py only imports this one.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(users.router, tags=["User"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(admin.router, tags=["Administration"])
