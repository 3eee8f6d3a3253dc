"""API router configuration."""

from fastapi import APIRouter

from src.modules.credentials.interfaces.router import router as credentials_router
from src.modules.redmine.interfaces.router import router as redmine_router
from src.modules.users.interfaces.router import router as users_router

api_router = APIRouter()

# Auth and Users
api_router.include_router(users_router)

# Redmine credentials
api_router.include_router(credentials_router)

# Redmine pass-through
api_router.include_router(redmine_router)
