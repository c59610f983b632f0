"""
Organizational position rules.

- headcount: a position never holds more employees than its head_count
- hierarchy: following reporting_position_id from any position terminates
- consistency: an employee's department/designation should match the
  position's (warning only)
"""
import logging
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import CapacityError, CircularHierarchyError, ValidationError
from ..models.database import Employee, OrganizationalPosition

logger = logging.getLogger("hr-admin.org-positions")


async def count_assigned_employees(db: AsyncSession, position_id: int) -> int:
    result = await db.execute(
        select(func.count(Employee.id)).where(Employee.organizational_position_id == position_id)
    )
    return result.scalar() or 0


async def count_subordinate_positions(db: AsyncSession, position_id: int) -> int:
    result = await db.execute(
        select(func.count(OrganizationalPosition.id)).where(
            OrganizationalPosition.reporting_position_id == position_id
        )
    )
    return result.scalar() or 0


async def check_headcount(
    db: AsyncSession,
    position: OrganizationalPosition,
    employee: Optional[Employee] = None,
) -> None:
    """Raise CapacityError if the position is already full.

    An employee already sitting in this position is exempt, so re-saving it
    never trips the limit.
    """
    if employee is not None and employee.organizational_position_id == position.id:
        return

    count = await count_assigned_employees(db, position.id)
    if count >= position.head_count:
        raise CapacityError(
            f'Cannot assign employee to "{position.title}". '
            f'Position is full ({count}/{position.head_count} filled).'
        )


async def check_circular_hierarchy(
    db: AsyncSession,
    position_id: Optional[int],
    reporting_position_id: Optional[int],
    organization_id: int,
) -> bool:
    """True if making position_id report to reporting_position_id closes a loop.

    Walks upwards from the proposed manager. Reaching position_id, or any node
    seen earlier in the walk, means a cycle. The walk ends at a position with
    no manager or at an id that does not exist in the organization.
    """
    visited = set()
    current_id = reporting_position_id

    while current_id is not None:
        if current_id == position_id or current_id in visited:
            return True
        visited.add(current_id)

        result = await db.execute(
            select(OrganizationalPosition.reporting_position_id).where(
                OrganizationalPosition.id == current_id,
                OrganizationalPosition.organization_id == organization_id,
            )
        )
        row = result.first()
        if row is None:
            return False
        current_id = row[0]

    return False


async def validate_reporting_position(
    db: AsyncSession,
    organization_id: int,
    reporting_position_id: int,
    position_id: Optional[int] = None,
) -> OrganizationalPosition:
    result = await db.execute(
        select(OrganizationalPosition).where(
            OrganizationalPosition.id == reporting_position_id,
            OrganizationalPosition.organization_id == organization_id,
        )
    )
    reporting = result.scalar_one_or_none()
    if not reporting:
        raise ValidationError("Reporting position not found")

    if await check_circular_hierarchy(db, position_id, reporting_position_id, organization_id):
        raise CircularHierarchyError(
            "Cannot set this reporting position as it would create a circular hierarchy"
        )
    return reporting


def warn_on_position_mismatch(
    position: OrganizationalPosition,
    department_id: Optional[int],
    designation_id: Optional[int],
) -> list:
    """Log (never raise) when an employee's department/designation differ from the position's."""
    warnings = []
    if department_id is not None and department_id != position.department_id:
        warnings.append(
            f"Warning: Employee departmentId ({department_id}) does not match "
            f"organizational position departmentId ({position.department_id})"
        )
    if designation_id is not None and designation_id != position.designation_id:
        warnings.append(
            f"Warning: Employee designationId ({designation_id}) does not match "
            f"organizational position designationId ({position.designation_id})"
        )
    for message in warnings:
        logger.warning(message, extra={"position_id": position.id})
    return warnings


async def resolve_position_for_assignment(
    db: AsyncSession,
    organization_id: int,
    position_id: int,
    employee: Optional[Employee] = None,
    department_id: Optional[int] = None,
    designation_id: Optional[int] = None,
) -> tuple:
    """Load the target position and run the capacity and consistency checks.

    Returns (position, warnings).
    """
    result = await db.execute(
        select(OrganizationalPosition).where(
            OrganizationalPosition.id == position_id,
            OrganizationalPosition.organization_id == organization_id,
        )
    )
    position = result.scalar_one_or_none()
    if not position:
        raise ValidationError("Organizational position not found")

    await check_headcount(db, position, employee)
    warnings = warn_on_position_mismatch(position, department_id, designation_id)
    return position, warnings
