from fastapi import APIRouter
from leaveflow.routers import admin, balances, leave, team, users

# Centralized API router hub: main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(leave.router, tags=["Leave Applications"])
api_router.include_router(balances.router, tags=["Leave Balances"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(team.router, tags=["Team"])
api_router.include_router(admin.router, tags=["Administration"])
