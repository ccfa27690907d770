from fastapi import APIRouter
from app.api.v1.endpoints import auth, register, public, health, employee, student, events, newsfeed
from app.api.v1.endpoints.admin import admin_router
from app.api.v1.endpoints.institution import institution_router

api_router = APIRouter()

# Liveness and readiness (/health, /health/ready)
api_router.include_router(health.router)

# Sessions and self-service registration
api_router.include_router(auth.router)
api_router.include_router(register.router)
api_router.include_router(public.router)

# Role areas
api_router.include_router(admin_router)
api_router.include_router(institution_router)
api_router.include_router(employee.router)
api_router.include_router(student.router)

# Shared reads
api_router.include_router(events.router)
api_router.include_router(newsfeed.router)
