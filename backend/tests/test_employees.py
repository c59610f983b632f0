"""
Tests for employee endpoints: position assignment rules and subscription limits.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from api.models.database import (
    Department, Designation, Employee, Organization, OrganizationalPosition, User,
)
from api.errors import CapacityError
from api.services.subscription import check_user_limit
from helpers import auth_headers

BASE = "/api/acme/employees"


@pytest_asyncio.fixture
async def position(
    db_session: AsyncSession, organization: Organization, department: Department, designation: Designation
) -> OrganizationalPosition:
    position = OrganizationalPosition(
        organization_id=organization.id,
        department_id=department.id,
        designation_id=designation.id,
        title="Backend Engineer",
        code="BE",
        head_count=2,
    )
    db_session.add(position)
    await db_session.commit()
    await db_session.refresh(position)
    return position


def employee_payload(code: str, position: OrganizationalPosition = None, **overrides) -> dict:
    payload = {
        "employee_code": code,
        "first_name": "Sam",
        "last_name": "Rivera",
        "email": f"{code.lower()}@acme.com",
    }
    if position is not None:
        payload.update(
            department_id=position.department_id,
            designation_id=position.designation_id,
            organizational_position_id=position.id,
        )
    payload.update(overrides)
    return payload


class TestEmployeeCrud:

    async def test_create_employee(self, client: AsyncClient, admin_user: User):
        response = await client.post(BASE, json=employee_payload("EMP001"), headers=auth_headers(admin_user))

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["data"]["employee_code"] == "EMP001"
        assert data["data"]["status"] == "Active"
        assert data["warnings"] == []

    async def test_duplicate_code(self, client: AsyncClient, admin_user: User):
        headers = auth_headers(admin_user)
        await client.post(BASE, json=employee_payload("EMP001"), headers=headers)
        response = await client.post(BASE, json=employee_payload("EMP001"), headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Employee with code EMP001 already exists"

    async def test_unknown_department(self, client: AsyncClient, admin_user: User):
        response = await client.post(
            BASE, json=employee_payload("EMP001", department_id=9999), headers=auth_headers(admin_user)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Department not found"

    async def test_list_and_search(self, client: AsyncClient, admin_user: User):
        headers = auth_headers(admin_user)
        await client.post(BASE, json=employee_payload("EMP001", first_name="Alice"), headers=headers)
        await client.post(BASE, json=employee_payload("EMP002", first_name="Bob"), headers=headers)

        response = await client.get(BASE, params={"search": "ali"}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert [e["first_name"] for e in data["data"]] == ["Alice"]
        assert data["pagination"]["total"] == 1

    async def test_delete_employee(self, client: AsyncClient, admin_user: User):
        headers = auth_headers(admin_user)
        created = await client.post(BASE, json=employee_payload("EMP001"), headers=headers)
        employee_id = created.json()["data"]["id"]

        response = await client.delete(f"{BASE}/{employee_id}", headers=headers)
        assert response.status_code == 200

        response = await client.get(f"{BASE}/{employee_id}", headers=headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Employee not found"


class TestBulkStatus:

    async def test_bulk_status_update(self, client: AsyncClient, admin_user: User):
        headers = auth_headers(admin_user)
        ids = []
        for code in ("EMP001", "EMP002"):
            created = await client.post(BASE, json=employee_payload(code), headers=headers)
            ids.append(created.json()["data"]["id"])

        response = await client.patch(
            f"{BASE}/bulk-status", json={"employee_ids": ids, "status": "On Leave"}, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"count": 2}
        assert response.json()["message"] == "2 employee(s) updated successfully"

        listed = await client.get(BASE, params={"status": "On Leave"}, headers=headers)
        assert listed.json()["pagination"]["total"] == 2

    async def test_foreign_employee_rejects_whole_batch(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, second_organization: Organization
    ):
        headers = auth_headers(admin_user)
        created = await client.post(BASE, json=employee_payload("EMP001"), headers=headers)
        own_id = created.json()["data"]["id"]
        foreign = Employee(organization_id=second_organization.id, employee_code="GX001", first_name="Hans")
        db_session.add(foreign)
        await db_session.commit()

        response = await client.patch(
            f"{BASE}/bulk-status", json={"employee_ids": [own_id, foreign.id], "status": "Terminated"}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "One or more employees not found or do not belong to this organization"
        own = await client.get(f"{BASE}/{own_id}", headers=headers)
        assert own.json()["data"]["status"] == "Active"

    @pytest.mark.parametrize("body", [
        {"employee_ids": [], "status": "Active"},
        {"employee_ids": [1], "status": "Retired"},
        {"employee_ids": [1]},
    ])
    async def test_invalid_body(self, client: AsyncClient, admin_user: User, body):
        response = await client.patch(f"{BASE}/bulk-status", json=body, headers=auth_headers(admin_user))

        assert response.status_code == 400
        assert response.json()["message"] == "Validation error"

    async def test_viewer_cannot_bulk_update(self, client: AsyncClient, viewer_user: User):
        response = await client.patch(
            f"{BASE}/bulk-status", json={"employee_ids": [1], "status": "Resigned"}, headers=auth_headers(viewer_user)
        )

        assert response.status_code == 403


class TestPositionAssignment:

    async def test_head_count_boundary(self, client: AsyncClient, admin_user: User, position):
        headers = auth_headers(admin_user)

        first = await client.post(BASE, json=employee_payload("EMP001", position), headers=headers)
        second = await client.post(BASE, json=employee_payload("EMP002", position), headers=headers)
        third = await client.post(BASE, json=employee_payload("EMP003", position), headers=headers)

        assert first.status_code == 201
        assert second.status_code == 201
        assert third.status_code == 400
        assert third.json()["message"] == (
            'Cannot assign employee to "Backend Engineer". Position is full (2/2 filled).'
        )

    async def test_resave_in_full_position_succeeds(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, position
    ):
        headers = auth_headers(admin_user)
        await client.post(BASE, json=employee_payload("EMP001", position), headers=headers)
        created = await client.post(BASE, json=employee_payload("EMP002", position), headers=headers)
        employee_id = created.json()["data"]["id"]

        response = await client.put(
            f"{BASE}/{employee_id}",
            json={"last_name": "Updated", "organizational_position_id": position.id},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["last_name"] == "Updated"

    async def test_shrunk_position_still_allows_resave(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, position
    ):
        headers = auth_headers(admin_user)
        await client.post(BASE, json=employee_payload("EMP001", position), headers=headers)
        created = await client.post(BASE, json=employee_payload("EMP002", position), headers=headers)
        employee_id = created.json()["data"]["id"]

        position.head_count = 1
        await db_session.commit()

        response = await client.put(f"{BASE}/{employee_id}", json={"phone": "+15550123"}, headers=headers)
        assert response.status_code == 200

    async def test_moving_into_full_position_fails(
        self, client: AsyncClient, admin_user: User, position
    ):
        headers = auth_headers(admin_user)
        await client.post(BASE, json=employee_payload("EMP001", position), headers=headers)
        await client.post(BASE, json=employee_payload("EMP002", position), headers=headers)
        outsider = await client.post(BASE, json=employee_payload("EMP003"), headers=headers)

        response = await client.put(
            f"{BASE}/{outsider.json()['data']['id']}",
            json={"organizational_position_id": position.id},
            headers=headers,
        )

        assert response.status_code == 400
        assert "Position is full" in response.json()["message"]

    async def test_department_mismatch_is_a_warning(
        self, client: AsyncClient, admin_user: User, position, second_department: Department
    ):
        response = await client.post(
            BASE,
            json=employee_payload("EMP001", position, department_id=second_department.id),
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 201
        warnings = response.json()["warnings"]
        assert len(warnings) == 1
        assert "does not match organizational position departmentId" in warnings[0]

    async def test_unknown_position(self, client: AsyncClient, admin_user: User):
        response = await client.post(
            BASE,
            json=employee_payload("EMP001", organizational_position_id=4040),
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Organizational position not found"


class TestSubscriptionLimits:

    async def test_employee_limit_from_organization(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, organization: Organization
    ):
        organization.max_employees = 1
        await db_session.commit()
        headers = auth_headers(admin_user)

        first = await client.post(BASE, json=employee_payload("EMP001"), headers=headers)
        second = await client.post(BASE, json=employee_payload("EMP002"), headers=headers)

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["message"] == (
            "Employee limit reached (1/1). Upgrade your subscription plan to add more employees."
        )

    async def test_employee_limit_falls_back_to_plan(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, organization: Organization, plan
    ):
        organization.max_employees = None
        plan.max_employees = 1
        db_session.add(Employee(organization_id=organization.id, employee_code="SEED", first_name="Seed"))
        await db_session.commit()

        response = await client.post(BASE, json=employee_payload("EMP001"), headers=auth_headers(admin_user))

        assert response.status_code == 400
        assert "Employee limit reached (1/1)" in response.json()["message"]

    async def test_user_limit(
        self, db_session: AsyncSession, organization: Organization, admin_user: User, viewer_user: User
    ):
        organization.max_users = 2
        await db_session.commit()

        with pytest.raises(CapacityError, match=r"User limit reached \(2/2\)"):
            await check_user_limit(db_session, organization)

        organization.max_users = 3
        await check_user_limit(db_session, organization)
