"""
Public endpoints used by registration forms (no session required)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.models import User, Institution, College, Department, Program, APPROVED_INSTITUTION_STATUSES
from app.schemas.organization import InstitutionOut
from app.services.org_unit_service import OrgUnitService
from app.services.registration_service import RegistrationService
from app.services.store import EntityStore

router = APIRouter(prefix="/public", tags=["Public"])


@router.get("/institutions")
async def list_institutions(db: AsyncSession = Depends(get_db)):
    """Approved institutions, alphabetically"""
    institutions = await EntityStore(db).all(
        select(Institution)
        .join(User, User.id == Institution.id)
        .where(User.status.in_(APPROVED_INSTITUTION_STATUSES))
        .order_by(Institution.name)
    )
    return {
        "ok": True,
        "institutions": [InstitutionOut.model_validate(i).model_dump(mode="json") for i in institutions],
    }


@router.get("/institution/{institution_id}/colleges")
async def list_colleges(institution_id: str, db: AsyncSession = Depends(get_db)):
    institution = await RegistrationService(db).find_institution(institution_id=institution_id)
    return {"ok": True, "colleges": await OrgUnitService(db).all_units(College, institution.id)}


@router.get("/institution/{institution_id}/departments")
async def list_departments(
    institution_id: str,
    college_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    institution = await RegistrationService(db).find_institution(institution_id=institution_id)
    return {"ok": True, "departments": await OrgUnitService(db).all_units(Department, institution.id, college_id)}


@router.get("/institution/{institution_id}/programs")
async def list_programs(
    institution_id: str,
    department_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    institution = await RegistrationService(db).find_institution(institution_id=institution_id)
    return {"ok": True, "programs": await OrgUnitService(db).all_units(Program, institution.id, department_id)}
