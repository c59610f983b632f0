"""
Employee endpoints.

Assigning an employee to an organizational position goes through the
position rules: the position must have free head count, and a department or
designation that differs from the position's is logged as a warning.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import DEFAULT_PAGE_SIZE, MODULE_EMPLOYEES
from ..database import get_db
from ..errors import DuplicateError, ValidationError
from ..models.database import Department, Designation, Employee, EmployeeStatus
from ..models.schemas import EmployeeCreate, EmployeeUpdate, EmployeeResponse, EmployeeBulkStatusUpdate
from ..services.org_positions import resolve_position_for_assignment
from ..services.permissions import TenantContext, require_permission
from ..services.subscription import check_employee_limit
from ..utils.responses import success_response, pagination_meta
from .common import get_org_object, page_params, serialize_many, serialize_one, logger

router = APIRouter()


async def _check_references(
    db: AsyncSession, organization_id: int, department_id: Optional[int], designation_id: Optional[int]
) -> None:
    if department_id is not None:
        result = await db.execute(
            select(Department.id).where(Department.id == department_id, Department.organization_id == organization_id)
        )
        if not result.first():
            raise ValidationError("Department not found")
    if designation_id is not None:
        result = await db.execute(
            select(Designation.id).where(Designation.id == designation_id, Designation.organization_id == organization_id)
        )
        if not result.first():
            raise ValidationError("Designation not found")


async def _ensure_unique_code(
    db: AsyncSession, organization_id: int, employee_code: str, exclude_id: Optional[int] = None
) -> None:
    query = select(Employee.id).where(
        Employee.organization_id == organization_id, Employee.employee_code == employee_code
    )
    if exclude_id is not None:
        query = query.where(Employee.id != exclude_id)
    if (await db.execute(query)).first():
        raise DuplicateError(f"Employee with code {employee_code} already exists")


@router.get("")
async def list_employees(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    status: Optional[EmployeeStatus] = None,
    department_id: Optional[int] = None,
    organizational_position_id: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_EMPLOYEES, "read")),
):
    page, limit, offset = page_params(page, limit)
    query = select(Employee).where(Employee.organization_id == ctx.organization_id)

    if status:
        query = query.where(Employee.status == status)
    if department_id:
        query = query.where(Employee.department_id == department_id)
    if organizational_position_id:
        query = query.where(Employee.organizational_position_id == organizational_position_id)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Employee.first_name.ilike(pattern),
            Employee.last_name.ilike(pattern),
            Employee.employee_code.ilike(pattern),
            Employee.email.ilike(pattern),
        ))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(query.order_by(Employee.employee_code).offset(offset).limit(limit))
    items = await serialize_many(db, ctx, MODULE_EMPLOYEES, EmployeeResponse, result.scalars().all())
    return success_response(
        items, "Employees retrieved successfully", pagination=pagination_meta(page, limit, total)
    )


@router.patch("/bulk-status")
async def bulk_update_employee_status(
    data: EmployeeBulkStatusUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_EMPLOYEES, "update")),
):
    """Set one status on many employees; all ids must belong to the organization."""
    employee_ids = set(data.employee_ids)
    result = await db.execute(
        select(Employee).where(Employee.id.in_(employee_ids), Employee.organization_id == ctx.organization_id)
    )
    employees = result.scalars().all()
    if len(employees) != len(employee_ids):
        raise ValidationError("One or more employees not found or do not belong to this organization")

    for employee in employees:
        employee.status = data.status
        employee.updated_by = ctx.user.id
    await db.commit()

    logger.info(
        f"Bulk status update: {len(employees)} employee(s) -> {data.status.value}",
        extra={"organization_id": ctx.organization_id}
    )
    return success_response({"count": len(employees)}, f"{len(employees)} employee(s) updated successfully")


@router.get("/{employee_id}")
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_EMPLOYEES, "read")),
):
    employee = await get_org_object(db, Employee, employee_id, ctx.organization_id, "Employee")
    item = await serialize_one(db, ctx, MODULE_EMPLOYEES, EmployeeResponse, employee)
    return success_response(item, "Employee retrieved successfully")


@router.post("", status_code=201)
async def create_employee(
    data: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_EMPLOYEES, "write")),
):
    await check_employee_limit(db, ctx.organization)
    await _ensure_unique_code(db, ctx.organization_id, data.employee_code)
    await _check_references(db, ctx.organization_id, data.department_id, data.designation_id)

    warnings = []
    if data.organizational_position_id is not None:
        _, warnings = await resolve_position_for_assignment(
            db, ctx.organization_id, data.organizational_position_id,
            department_id=data.department_id, designation_id=data.designation_id,
        )

    employee = Employee(
        organization_id=ctx.organization_id,
        created_by=ctx.user.id,
        **data.model_dump(),
    )
    db.add(employee)
    await db.commit()
    await db.refresh(employee)

    logger.info(f"Employee created: {employee.id}", extra={"organization_id": ctx.organization_id})
    item = await serialize_one(db, ctx, MODULE_EMPLOYEES, EmployeeResponse, employee)
    return success_response(item, "Employee created successfully", warnings=warnings)


@router.put("/{employee_id}")
async def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_EMPLOYEES, "update")),
):
    employee = await get_org_object(db, Employee, employee_id, ctx.organization_id, "Employee")

    updates = data.model_dump(exclude_unset=True)
    for required in ("employee_code", "first_name", "status"):
        if required in updates and updates[required] is None:
            raise ValidationError(f"{required} cannot be empty")
    if "employee_code" in updates:
        await _ensure_unique_code(db, ctx.organization_id, updates["employee_code"], exclude_id=employee.id)

    department_id = updates.get("department_id", employee.department_id)
    designation_id = updates.get("designation_id", employee.designation_id)
    await _check_references(
        db, ctx.organization_id, updates.get("department_id"), updates.get("designation_id")
    )

    warnings = []
    position_id = updates.get("organizational_position_id", employee.organizational_position_id)
    if position_id is not None:
        # Same position as before is exempt from the head count check
        _, warnings = await resolve_position_for_assignment(
            db, ctx.organization_id, position_id, employee=employee,
            department_id=department_id, designation_id=designation_id,
        )

    for key, value in updates.items():
        setattr(employee, key, value)
    employee.updated_by = ctx.user.id

    await db.commit()
    await db.refresh(employee)
    item = await serialize_one(db, ctx, MODULE_EMPLOYEES, EmployeeResponse, employee)
    return success_response(item, "Employee updated successfully", warnings=warnings)


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_EMPLOYEES, "delete")),
):
    employee = await get_org_object(db, Employee, employee_id, ctx.organization_id, "Employee")
    await db.delete(employee)
    await db.commit()
    logger.info(f"Employee deleted: {employee_id}", extra={"organization_id": ctx.organization_id})
    return success_response(message="Employee deleted successfully")
