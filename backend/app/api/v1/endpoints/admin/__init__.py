"""
Super-admin API endpoints.
All endpoints require the super_admin role.
"""
from fastapi import APIRouter

from app.api.v1.endpoints.admin import dashboard, institutions, clubs, users, audit_logs

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(dashboard.router, tags=["Admin Dashboard"])
admin_router.include_router(institutions.router, prefix="/institutions", tags=["Admin Institutions"])
admin_router.include_router(clubs.router, prefix="/clubs", tags=["Admin Clubs"])
admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
admin_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Admin Audit Logs"])
