"""
Tests for authentication: password hashing, login lockout, token handling
and startup seeding.
"""
from datetime import timedelta

from httpx import AsyncClient
from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.config import settings
from api.constants import ALL_MODULES
from api.models.database import OrgModule, User
from api.services.auth import (
    authenticate_user,
    create_access_token,
    create_superadmin_if_not_exists,
    hash_password,
    verify_password,
)
from helpers import auth_headers, make_user

LOGIN = "/api/auth/login"


class TestPasswordHashing:

    def test_hash_and_verify(self):
        hashed = hash_password("testpassword123")

        assert hashed != "testpassword123"
        assert verify_password("testpassword123", hashed) is True
        assert verify_password("wrongpassword", hashed) is False

    def test_hash_is_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_long_password_is_truncated_consistently(self):
        password = "p" * 100
        hashed = hash_password(password)

        # bcrypt only reads the first 72 bytes
        assert verify_password("p" * 72, hashed) is True


class TestTokens:

    def test_token_carries_claims(self):
        token = create_access_token({"sub": "42", "token_version": 3})
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

        assert payload["sub"] == "42"
        assert payload["token_version"] == 3
        assert "exp" in payload

    async def test_expired_token_rejected(self, client: AsyncClient, admin_user: User):
        token = create_access_token(
            {"sub": str(admin_user.id), "token_version": 0}, expires_delta=timedelta(seconds=-1)
        )

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"


class TestLogin:

    async def test_authenticate_user(self, db_session: AsyncSession, admin_user: User):
        assert (await authenticate_user(db_session, admin_user.email, "password123")).id == admin_user.id
        assert await authenticate_user(db_session, admin_user.email, "nope") is None
        assert await authenticate_user(db_session, "ghost@acme.com", "password123") is None

    async def test_login_success(self, client: AsyncClient, admin_user: User):
        response = await client.post(LOGIN, json={"email": admin_user.email, "password": "password123"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Login successful"
        assert body["data"]["access_token"]
        assert body["data"]["user"]["email"] == admin_user.email
        assert "access_token" in response.cookies

    async def test_wrong_password(self, client: AsyncClient, admin_user: User):
        response = await client.post(LOGIN, json={"email": admin_user.email, "password": "wrong"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}

    async def test_unknown_email(self, client: AsyncClient, organization):
        response = await client.post(LOGIN, json={"email": "ghost@acme.com", "password": "password123"})
        assert response.status_code == 401

    async def test_lockout_after_repeated_failures(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User
    ):
        for _ in range(4):
            response = await client.post(LOGIN, json={"email": admin_user.email, "password": "wrong"})
            assert response.status_code == 401

        response = await client.post(LOGIN, json={"email": admin_user.email, "password": "wrong"})
        assert response.status_code == 423

        # Even the right password is refused while locked
        response = await client.post(LOGIN, json={"email": admin_user.email, "password": "password123"})
        assert response.status_code == 423
        assert response.json()["message"].startswith("Account locked")

        await db_session.refresh(admin_user)
        assert admin_user.failed_login_attempts == 5
        assert admin_user.locked_until is not None

    async def test_inactive_user(self, client: AsyncClient, db_session: AsyncSession, organization):
        user = await make_user(db_session, "gone@acme.com", organization, is_active=False)

        response = await client.post(LOGIN, json={"email": user.email, "password": "password123"})

        assert response.status_code == 403
        assert response.json()["message"] == "Account is inactive"

    async def test_invalid_email_format(self, client: AsyncClient):
        response = await client.post(LOGIN, json={"email": "not-an-email", "password": "x"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "email"


class TestSession:

    async def test_me(self, client: AsyncClient, admin_user: User):
        response = await client.get("/api/auth/me", headers=auth_headers(admin_user))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == admin_user.id
        assert data["organization_id"] == admin_user.organization_id
        assert "password_hash" not in data

    async def test_me_with_cookie(self, client: AsyncClient, admin_user: User):
        login = await client.post(LOGIN, json={"email": admin_user.email, "password": "password123"})
        token = login.json()["data"]["access_token"]

        response = await client.get("/api/auth/me", cookies={"access_token": token})
        assert response.status_code == 200

    async def test_logout_clears_cookie(self, client: AsyncClient):
        response = await client.post("/api/auth/logout")

        assert response.status_code == 200
        assert 'access_token=""' in response.headers["set-cookie"]


class TestSeeding:

    async def test_creates_modules_and_superadmin(self, db_session: AsyncSession):
        await create_superadmin_if_not_exists(db_session)
        await create_superadmin_if_not_exists(db_session)

        codes = (await db_session.execute(select(OrgModule.code))).scalars().all()
        assert sorted(codes) == sorted(ALL_MODULES)

        admins = (await db_session.execute(
            select(User).where(User.is_super_admin.is_(True))
        )).scalars().all()
        assert len(admins) == 1
        assert admins[0].email == settings.superadmin_email
        assert admins[0].organization_id is None

    async def test_keeps_existing_superadmin(self, db_session: AsyncSession, superadmin_user: User):
        await create_superadmin_if_not_exists(db_session)

        admins = (await db_session.execute(
            select(User).where(User.is_super_admin.is_(True))
        )).scalars().all()
        assert [a.id for a in admins] == [superadmin_user.id]


class TestAppShell:

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_security_headers(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    async def test_correlation_id_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Correlation-ID": "req-123"})
        assert response.headers.get("X-Correlation-ID") == "req-123"
