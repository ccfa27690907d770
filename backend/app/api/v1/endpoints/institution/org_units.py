"""
Institution Org Unit endpoints: colleges, departments and programs.

Create and update take multipart form fields (logos for colleges and
departments). Parent ids are validated against the caller's institution.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import Optional

from app.api.deps import get_org_unit_service
from app.models import College, Department, Program
from app.modules.auth.dependencies import require_institution
from app.modules.auth.session import SessionUser
from app.services.org_unit_service import OrgUnitService, serialize_unit
from app.services.storage_service import uploaded

router = APIRouter()


# ==================== COLLEGES ====================

@router.get("/colleges")
async def list_colleges(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    result = await service.list_units(College, session.institution_id, search=search, page=page, page_size=page_size)
    return {"ok": True, **result}


@router.get("/colleges/list")
async def all_colleges(
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    return {"ok": True, "colleges": await service.all_units(College, session.institution_id)}


@router.post("/colleges", status_code=status.HTTP_201_CREATED)
async def create_college(
    name: str = Form(""),
    acronym: str = Form(""),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    college = await service.create_college(session.institution_id, name, acronym, email, phone, uploaded(logo))
    return {"ok": True, "college": serialize_unit(college)}


@router.patch("/colleges/{college_id}")
async def update_college(
    college_id: str,
    name: Optional[str] = Form(None),
    acronym: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    college = await service.get_unit(College, college_id, session.institution_id)
    fields = {"name": name, "acronym": acronym, "email": email, "phone": phone}
    college = await service.update_unit(college, fields, uploaded(logo))
    return {"ok": True, "college": serialize_unit(college)}


@router.delete("/colleges/{college_id}")
async def delete_college(
    college_id: str,
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    """Deletes the college with its departments and programs"""
    await service.delete_unit(await service.get_unit(College, college_id, session.institution_id))
    return {"ok": True}


# ==================== DEPARTMENTS ====================

@router.get("/departments")
async def list_departments(
    search: Optional[str] = None,
    college_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    result = await service.list_units(
        Department, session.institution_id, search=search, parent_id=college_id, page=page, page_size=page_size
    )
    return {"ok": True, **result}


@router.get("/departments/list")
async def all_departments(
    college_id: Optional[str] = None,
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    return {"ok": True, "departments": await service.all_units(Department, session.institution_id, college_id)}


@router.post("/departments", status_code=status.HTTP_201_CREATED)
async def create_department(
    college_id: str = Form(""),
    name: str = Form(""),
    acronym: str = Form(""),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    """The college must belong to the caller's institution (404 otherwise)"""
    department = await service.create_department(
        session.institution_id, college_id, name, acronym, email, phone, uploaded(logo)
    )
    return {"ok": True, "department": serialize_unit(department)}


@router.patch("/departments/{department_id}")
async def update_department(
    department_id: str,
    college_id: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    acronym: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    department = await service.get_unit(Department, department_id, session.institution_id)
    fields = {"college_id": college_id, "name": name, "acronym": acronym, "email": email, "phone": phone}
    department = await service.update_unit(department, fields, uploaded(logo))
    return {"ok": True, "department": serialize_unit(department)}


@router.delete("/departments/{department_id}")
async def delete_department(
    department_id: str,
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    await service.delete_unit(await service.get_unit(Department, department_id, session.institution_id))
    return {"ok": True}


# ==================== PROGRAMS ====================

@router.get("/programs")
async def list_programs(
    search: Optional[str] = None,
    department_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    result = await service.list_units(
        Program, session.institution_id, search=search, parent_id=department_id, page=page, page_size=page_size
    )
    return {"ok": True, **result}


@router.get("/programs/list")
async def all_programs(
    department_id: Optional[str] = None,
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    return {"ok": True, "programs": await service.all_units(Program, session.institution_id, department_id)}


@router.post("/programs", status_code=status.HTTP_201_CREATED)
async def create_program(
    department_id: str = Form(""),
    name: str = Form(""),
    acronym: str = Form(""),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    program = await service.create_program(session.institution_id, department_id, name, acronym)
    return {"ok": True, "program": serialize_unit(program)}


@router.patch("/programs/{program_id}")
async def update_program(
    program_id: str,
    department_id: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    acronym: Optional[str] = Form(None),
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    program = await service.get_unit(Program, program_id, session.institution_id)
    program = await service.update_unit(program, {"department_id": department_id, "name": name, "acronym": acronym})
    return {"ok": True, "program": serialize_unit(program)}


@router.delete("/programs/{program_id}")
async def delete_program(
    program_id: str,
    service: OrgUnitService = Depends(get_org_unit_service),
    session: SessionUser = Depends(require_institution)
):
    await service.delete_unit(await service.get_unit(Program, program_id, session.institution_id))
    return {"ok": True}
