"""
Registration endpoints (rate limited: 3/min)

- POST /register/student
- POST /register/employee
- POST /register/institution  (account starts pending)
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limiter import limiter, REGISTER_LIMIT
from app.models import MembershipKind
from app.schemas.auth import MemberRegister, InstitutionRegister, UserOut
from app.services.registration_service import RegistrationService

router = APIRouter(prefix="/register", tags=["Registration"])


@router.post("/student", status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register_student(
    request: Request,
    data: MemberRegister,
    db: AsyncSession = Depends(get_db)
):
    user = await RegistrationService(db).register_member(data, MembershipKind.STUDENT)
    return {"ok": True, "user": UserOut.model_validate(user).model_dump(mode="json")}


@router.post("/employee", status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register_employee(
    request: Request,
    data: MemberRegister,
    db: AsyncSession = Depends(get_db)
):
    user = await RegistrationService(db).register_member(data, MembershipKind.EMPLOYEE)
    return {"ok": True, "user": UserOut.model_validate(user).model_dump(mode="json")}


@router.post("/institution", status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register_institution(
    request: Request,
    data: InstitutionRegister,
    db: AsyncSession = Depends(get_db)
):
    """The institution can sign in once a super-admin approves it"""
    user = await RegistrationService(db).register_institution(data)
    return {
        "ok": True,
        "message": "Registration received. Your institution is pending approval.",
        "user": UserOut.model_validate(user).model_dump(mode="json"),
    }
