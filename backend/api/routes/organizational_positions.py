"""
Organizational position endpoints (master data).

Positions form the org chart: each one is a department + designation slot
with a head count and an optional reporting position.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import MODULE_MASTER_DATA
from ..database import get_db
from ..errors import DuplicateError, ValidationError
from ..models.database import Department, Designation, Employee, OrganizationalPosition
from ..models.schemas import OrgPositionCreate, OrgPositionUpdate, OrgPositionResponse
from ..services.org_positions import (
    count_assigned_employees, count_subordinate_positions, validate_reporting_position,
)
from ..services.permissions import TenantContext, require_permission
from ..utils.responses import success_response
from .common import get_org_object, serialize_many, serialize_one, logger

router = APIRouter()


async def _check_department_and_designation(
    db: AsyncSession, organization_id: int, department_id: int, designation_id: int
) -> None:
    result = await db.execute(
        select(Department.id).where(Department.id == department_id, Department.organization_id == organization_id)
    )
    if not result.first():
        raise ValidationError("Department not found")
    result = await db.execute(
        select(Designation.id).where(Designation.id == designation_id, Designation.organization_id == organization_id)
    )
    if not result.first():
        raise ValidationError("Designation not found")


async def _check_uniqueness(
    db: AsyncSession,
    organization_id: int,
    code: Optional[str],
    department_id: int,
    designation_id: int,
    title: str,
    exclude_id: Optional[int] = None,
) -> None:
    base = select(OrganizationalPosition.id).where(OrganizationalPosition.organization_id == organization_id)
    if exclude_id is not None:
        base = base.where(OrganizationalPosition.id != exclude_id)

    if code:
        if (await db.execute(base.where(OrganizationalPosition.code == code))).first():
            raise DuplicateError(f"Organizational position with code {code} already exists")

    duplicate = await db.execute(base.where(
        OrganizationalPosition.department_id == department_id,
        OrganizationalPosition.designation_id == designation_id,
        OrganizationalPosition.title == title,
    ))
    if duplicate.first():
        raise DuplicateError(
            "An organizational position with this title already exists for this department and designation"
        )


async def _counts(db: AsyncSession, positions) -> dict:
    """employee_count / subordinate_count per position id"""
    ids = [p.id for p in positions]
    if not ids:
        return {}
    employees = dict((await db.execute(
        select(Employee.organizational_position_id, func.count(Employee.id))
        .where(Employee.organizational_position_id.in_(ids))
        .group_by(Employee.organizational_position_id)
    )).all())
    subordinates = dict((await db.execute(
        select(OrganizationalPosition.reporting_position_id, func.count(OrganizationalPosition.id))
        .where(OrganizationalPosition.reporting_position_id.in_(ids))
        .group_by(OrganizationalPosition.reporting_position_id)
    )).all())
    return {
        pid: {"employee_count": employees.get(pid, 0), "subordinate_count": subordinates.get(pid, 0)}
        for pid in ids
    }


@router.get("")
async def list_positions(
    is_active: Optional[bool] = None,
    department_id: Optional[int] = None,
    designation_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_MASTER_DATA, "read")),
):
    query = select(OrganizationalPosition).where(OrganizationalPosition.organization_id == ctx.organization_id)
    if is_active is not None:
        query = query.where(OrganizationalPosition.is_active == is_active)
    if department_id:
        query = query.where(OrganizationalPosition.department_id == department_id)
    if designation_id:
        query = query.where(OrganizationalPosition.designation_id == designation_id)

    result = await db.execute(query.order_by(OrganizationalPosition.title))
    positions = result.scalars().all()
    items = await serialize_many(
        db, ctx, MODULE_MASTER_DATA, OrgPositionResponse, positions, await _counts(db, positions)
    )
    return success_response(items, "Organizational positions retrieved successfully")


@router.get("/{position_id}")
async def get_position(
    position_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_MASTER_DATA, "read")),
):
    position = await get_org_object(
        db, OrganizationalPosition, position_id, ctx.organization_id, "Organizational position"
    )
    item = await serialize_one(
        db, ctx, MODULE_MASTER_DATA, OrgPositionResponse, position,
        employee_count=await count_assigned_employees(db, position.id),
        subordinate_count=await count_subordinate_positions(db, position.id),
    )
    return success_response(item, "Organizational position retrieved successfully")


@router.post("", status_code=201)
async def create_position(
    data: OrgPositionCreate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_MASTER_DATA, "write")),
):
    code = data.code.strip().upper() if data.code else None
    title = data.title.strip()

    await _check_department_and_designation(db, ctx.organization_id, data.department_id, data.designation_id)
    await _check_uniqueness(db, ctx.organization_id, code, data.department_id, data.designation_id, title)
    if data.reporting_position_id is not None:
        await validate_reporting_position(db, ctx.organization_id, data.reporting_position_id)

    position = OrganizationalPosition(
        organization_id=ctx.organization_id,
        title=title,
        code=code,
        description=data.description,
        department_id=data.department_id,
        designation_id=data.designation_id,
        reporting_position_id=data.reporting_position_id,
        head_count=data.head_count,
        is_active=data.is_active,
        created_by=ctx.user.id,
    )
    db.add(position)
    await db.commit()
    await db.refresh(position)

    logger.info(f"Organizational position created: {position.id}", extra={"organization_id": ctx.organization_id})
    item = await serialize_one(db, ctx, MODULE_MASTER_DATA, OrgPositionResponse, position)
    return success_response(item, "Organizational position created successfully")


@router.put("/{position_id}")
async def update_position(
    position_id: int,
    data: OrgPositionUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_MASTER_DATA, "update")),
):
    position = await get_org_object(
        db, OrganizationalPosition, position_id, ctx.organization_id, "Organizational position"
    )

    updates = data.model_dump(exclude_unset=True)
    for required in ("title", "department_id", "designation_id", "head_count"):
        if required in updates and updates[required] is None:
            raise ValidationError(f"{required} cannot be empty")
    if updates.get("title"):
        updates["title"] = updates["title"].strip()
    if "code" in updates:
        updates["code"] = updates["code"].strip().upper() if updates["code"] else None

    department_id = updates.get("department_id", position.department_id)
    designation_id = updates.get("designation_id", position.designation_id)
    title = updates.get("title", position.title)

    if "department_id" in updates or "designation_id" in updates:
        await _check_department_and_designation(db, ctx.organization_id, department_id, designation_id)
    await _check_uniqueness(
        db, ctx.organization_id, updates.get("code"), department_id, designation_id, title,
        exclude_id=position.id,
    )
    # Clearing the reporting position can never close a loop
    if updates.get("reporting_position_id") is not None:
        await validate_reporting_position(
            db, ctx.organization_id, updates["reporting_position_id"], position_id=position.id
        )

    for key, value in updates.items():
        setattr(position, key, value)
    position.updated_by = ctx.user.id

    await db.commit()
    await db.refresh(position)
    item = await serialize_one(db, ctx, MODULE_MASTER_DATA, OrgPositionResponse, position)
    return success_response(item, "Organizational position updated successfully")


@router.delete("/{position_id}")
async def delete_position(
    position_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(MODULE_MASTER_DATA, "delete")),
):
    position = await get_org_object(
        db, OrganizationalPosition, position_id, ctx.organization_id, "Organizational position"
    )

    employee_count = await count_assigned_employees(db, position.id)
    if employee_count:
        raise ValidationError(
            f"Cannot delete organizational position with {employee_count} assigned employees. "
            "Please reassign them first."
        )
    subordinate_count = await count_subordinate_positions(db, position.id)
    if subordinate_count:
        raise ValidationError(
            f"Cannot delete organizational position with {subordinate_count} subordinate positions. "
            "Please reassign them first."
        )

    await db.delete(position)
    await db.commit()
    logger.info(f"Organizational position deleted: {position_id}", extra={"organization_id": ctx.organization_id})
    return success_response(message="Organizational position deleted successfully")
