"""
Org Unit Service - colleges, departments and programs of one institution

Every write is scoped: parents are validated against the caller's
institution, and units of another institution are reported as not found.
Deleting a unit removes its children and clears member enrollments.
"""

from typing import Any, Dict, List, Optional, Type

from fastapi import UploadFile
from sqlalchemy import select, delete, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.core.types import generate_uuid
from app.models import College, Department, Program, InstitutionMembership
from app.schemas.organization import CollegeOut, DepartmentOut, ProgramOut
from app.services.storage_service import UploadStorage, UploadBatch
from app.services.store import EntityStore
from app.services.validators import Validators, clean_contact, require_text
from app.utils.pagination import paginate

SCHEMAS = {
    College: CollegeOut,
    Department: DepartmentOut,
    Program: ProgramOut,
}


def serialize_unit(unit: Any) -> Dict[str, Any]:
    return SCHEMAS[type(unit)].model_validate(unit).model_dump(mode="json")


class OrgUnitService:

    def __init__(self, db: AsyncSession, storage: Optional[UploadStorage] = None):
        self.db = db
        self.store = EntityStore(db)
        self.validators = Validators(db)
        self.storage = storage

    # ==================== READ ====================

    async def get_unit(self, model: Type[Any], unit_id: str, institution_id: str) -> Any:
        unit = await self.store.get(model, unit_id)
        if unit is None or unit.institution_id != institution_id:
            raise ResourceNotFoundError(model.__name__, unit_id)
        return unit

    def _query(self, model: Type[Any], institution_id: str, search: Optional[str], parent_id: Optional[str]):
        conditions = [model.institution_id == institution_id]
        if parent_id and model is Department:
            conditions.append(Department.college_id == parent_id)
        if parent_id and model is Program:
            conditions.append(Program.department_id == parent_id)
        if search:
            term = f"%{search.strip()}%"
            conditions.append(or_(model.name.ilike(term), model.acronym.ilike(term)))
        return select(model).where(*conditions).order_by(model.name)

    async def list_units(
        self,
        model: Type[Any],
        institution_id: str,
        search: Optional[str] = None,
        parent_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        query = self._query(model, institution_id, search, parent_id)
        return await paginate(self.db, query, page, page_size, serializer=serialize_unit)

    async def all_units(self, model: Type[Any], institution_id: str, parent_id: Optional[str] = None) -> List[Dict[str, Any]]:
        units = await self.store.all(self._query(model, institution_id, None, parent_id))
        return [serialize_unit(unit) for unit in units]

    # ==================== COLLEGES ====================

    async def create_college(
        self,
        institution_id: str,
        name: str,
        acronym: str,
        email: Optional[str],
        phone: Optional[str],
        logo: Optional[UploadFile],
    ) -> College:
        name = require_text(name, "Name is required", field="name")
        acronym = require_text(acronym, "Acronym is required", field="acronym")
        if logo is None:
            raise ValidationError("Logo is required", field="logo")

        async with UploadBatch(self.storage) as uploads:
            college = self.store.add(College(
                id=generate_uuid(),
                institution_id=institution_id,
                name=name,
                acronym=acronym,
                **clean_contact(email, phone),
            ))
            college.logo_url = await uploads.save(logo, "colleges")
            await self.store.flush("College already exists")
        return college

    # ==================== DEPARTMENTS ====================

    async def create_department(
        self,
        institution_id: str,
        college_id: str,
        name: str,
        acronym: str,
        email: Optional[str],
        phone: Optional[str],
        logo: Optional[UploadFile],
    ) -> Department:
        """The college must belong to the same institution (404 otherwise)"""
        college_id = require_text(college_id, "College is required", field="college_id")
        name = require_text(name, "Name is required", field="name")
        acronym = require_text(acronym, "Acronym is required", field="acronym")
        await self.validators.validate_college_belongs_to_institution(college_id, institution_id)
        if logo is None:
            raise ValidationError("Logo is required", field="logo")

        async with UploadBatch(self.storage) as uploads:
            department = self.store.add(Department(
                id=generate_uuid(),
                institution_id=institution_id,
                college_id=college_id,
                name=name,
                acronym=acronym,
                **clean_contact(email, phone),
            ))
            department.logo_url = await uploads.save(logo, "departments")
            await self.store.flush("Department already exists")
        return department

    # ==================== PROGRAMS ====================

    async def create_program(self, institution_id: str, department_id: str, name: str, acronym: str) -> Program:
        department_id = require_text(department_id, "Department is required", field="department_id")
        name = require_text(name, "Name is required", field="name")
        acronym = require_text(acronym, "Acronym is required", field="acronym")
        await self.validators.validate_department_belongs_to_institution(department_id, institution_id)

        program = self.store.add(Program(
            id=generate_uuid(),
            institution_id=institution_id,
            department_id=department_id,
            name=name,
            acronym=acronym,
        ))
        await self.store.flush("Program already exists")
        return program

    # ==================== UPDATE / DELETE ====================

    async def update_unit(
        self,
        unit: Any,
        fields: Dict[str, Optional[str]],
        logo: Optional[UploadFile] = None,
    ) -> Any:
        """Apply non-None fields; re-parenting is scoped like creation"""
        for key in ("name", "acronym"):
            if fields.get(key) is not None:
                setattr(unit, key, require_text(fields[key], f"{key.capitalize()} is required", field=key))

        if isinstance(unit, Department) and fields.get("college_id"):
            await self.validators.validate_college_belongs_to_institution(fields["college_id"], unit.institution_id)
            unit.college_id = fields["college_id"]
        if isinstance(unit, Program) and fields.get("department_id"):
            await self.validators.validate_department_belongs_to_institution(fields["department_id"], unit.institution_id)
            unit.department_id = fields["department_id"]

        if not isinstance(unit, Program) and (fields.get("email") is not None or fields.get("phone") is not None):
            contact = clean_contact(fields.get("email"), fields.get("phone"))
            for key, value in contact.items():
                if fields.get(key) is not None:
                    setattr(unit, key, value)

        old_logo = None
        async with UploadBatch(self.storage) as uploads:
            if logo is not None and not isinstance(unit, Program):
                old_logo = unit.logo_url
                category = "colleges" if isinstance(unit, College) else "departments"
                unit.logo_url = await uploads.save(logo, category)
            await self.store.flush()

        if old_logo:
            await self.storage.delete(old_logo)
        return unit

    async def delete_unit(self, unit: Any) -> None:
        logos: List[str] = []

        if isinstance(unit, College):
            departments = await self.store.all(select(Department).where(Department.college_id == unit.id))
            for department in departments:
                await self._delete_department(department, logos)
            await self.store.execute(
                update(InstitutionMembership).where(InstitutionMembership.college_id == unit.id).values(college_id=None)
            )
        elif isinstance(unit, Department):
            await self._delete_department(unit, logos)
            unit = None
        else:
            await self.store.execute(
                update(InstitutionMembership).where(InstitutionMembership.program_id == unit.id).values(program_id=None)
            )

        if unit is not None:
            if getattr(unit, "logo_url", None):
                logos.append(unit.logo_url)
            await self.store.delete(unit)
        await self.store.flush()

        for url in logos:
            await self.storage.delete(url)

    async def _delete_department(self, department: Department, logos: List[str]) -> None:
        program_ids = select(Program.id).where(Program.department_id == department.id)
        await self.store.execute(
            update(InstitutionMembership)
            .where(InstitutionMembership.program_id.in_(program_ids))
            .values(program_id=None)
        )
        await self.store.execute(delete(Program).where(Program.department_id == department.id))
        await self.store.execute(
            update(InstitutionMembership)
            .where(InstitutionMembership.department_id == department.id)
            .values(department_id=None)
        )
        if department.logo_url:
            logos.append(department.logo_url)
        await self.store.delete(department)
