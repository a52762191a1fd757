"""
Tests for authentication endpoints and request authentication.
"""
from fastapi import status

from ..auth.jwt_handler import JWTHandler
from ..database.models import AuditLogEntry, Organization, OrganizationMembership, UserRole
from .test_base import DEFAULT_PASSWORD, BaseAPITest, bearer, create_member


class TestRegistration(BaseAPITest):
    """Test user and organization registration."""

    def test_register_creates_organization_with_admin(self, client, db_session):
        response = client.post("/api/v1/auth/register", json={
            "email": "owner@kaieteur.example.com",
            "password": "Kaieteur2025",
            "name": "Kaieteur Owner",
            "organization_name": "Kaieteur Consulting",
        })

        self.assert_success_response(response, status.HTTP_201_CREATED)
        data = response.json()
        assert data["access_token"]
        assert data["user"]["email"] == "owner@kaieteur.example.com"
        assert len(data["organizations"]) == 1
        assert data["organizations"][0]["role"] == "admin"
        assert data["current_organization_id"] == data["organizations"][0]["id"]

        organization = db_session.query(Organization).one()
        assert organization.slug == "kaieteur-consulting"
        assert organization.settings == {"timezone": "America/Guyana", "currency": "GYD"}
        membership = db_session.query(OrganizationMembership).one()
        assert membership.role == UserRole.ADMIN
        assert db_session.query(AuditLogEntry).one().action == "organization:create"

    def test_register_duplicate_email(self, client, tenant_a):
        response = client.post("/api/v1/auth/register", json={
            "email": "alice@alpha.example.com",
            "password": "Password123",
            "name": "Alice Again",
            "organization_name": "Another Firm",
        })

        self.assert_error_response(response, status.HTTP_409_CONFLICT, "already exists")

    def test_register_weak_password(self, client):
        response = client.post("/api/v1/auth/register", json={
            "email": "weak@example.com",
            "password": "onlyletters",
            "name": "Weak",
            "organization_name": "Weak Firm",
        })

        self.assert_error_response(response, status.HTTP_422_UNPROCESSABLE_ENTITY, "letters and digits")

    def test_register_validation_error(self, client):
        response = client.post("/api/v1/auth/register", json={"email": "not-an-email"})

        self.assert_validation_error(response, "email")


class TestLogin(BaseAPITest):
    """Test login and organization selection."""

    def test_login_selects_only_organization(self, client, tenant_a):
        response = client.post("/api/v1/auth/login", json={
            "email": "alice@alpha.example.com",
            "password": DEFAULT_PASSWORD,
        })

        self.assert_success_response(response)
        data = response.json()
        assert data["current_organization_id"] == str(tenant_a.organization.id)
        payload = JWTHandler.verify_token(data["access_token"])
        assert payload["sub"] == str(tenant_a.user.id)
        assert payload["organization_id"] == str(tenant_a.organization.id)

    def test_login_wrong_password(self, client, tenant_a):
        response = client.post("/api/v1/auth/login", json={
            "email": "alice@alpha.example.com",
            "password": "wrong-password1",
        })

        self.assert_error_response(response, status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    def test_login_with_foreign_organization_is_denied(self, client, tenant_a, tenant_b):
        response = client.post("/api/v1/auth/login", json={
            "email": "alice@alpha.example.com",
            "password": DEFAULT_PASSWORD,
            "organization_id": str(tenant_b.organization.id),
        })

        self.assert_forbidden(response)

    def test_multi_organization_user_must_select(self, client, db_session, tenant_a, tenant_b):
        create_member(db_session, tenant_b.organization, "alice@alpha.example.com", UserRole.ACCOUNTANT)

        login = client.post("/api/v1/auth/login", json={
            "email": "alice@alpha.example.com",
            "password": DEFAULT_PASSWORD,
        })
        self.assert_success_response(login)
        assert login.json()["current_organization_id"] is None
        assert len(login.json()["organizations"]) == 2
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        self.assert_error_response(
            client.get("/api/v1/clients/", headers=headers), status.HTTP_400_BAD_REQUEST, "No organization selected"
        )

        selected = client.post("/api/v1/auth/select-organization", json={
            "organization_id": str(tenant_b.organization.id),
        }, headers=headers)
        self.assert_success_response(selected)
        assert selected.json()["current_organization_id"] == str(tenant_b.organization.id)

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {selected.json()['access_token']}"})
        self.assert_success_response(me)
        assert me.json()["current_organization_id"] == str(tenant_b.organization.id)

    def test_select_foreign_organization_is_denied(self, client, tenant_a, tenant_b, auth_headers_a):
        response = client.post("/api/v1/auth/select-organization", json={
            "organization_id": str(tenant_b.organization.id),
        }, headers=auth_headers_a)

        self.assert_forbidden(response)


class TestRequestAuthentication(BaseAPITest):
    """Test how requests are authenticated and scoped."""

    def test_missing_token(self, client):
        self.assert_unauthorized(client.get("/api/v1/clients/"))

    def test_missing_token_with_malformed_organization_header(self, client):
        response = client.get("/api/v1/clients/", headers={"X-Organization-ID": "not-a-uuid"})

        self.assert_unauthorized(response)

    def test_invalid_token(self, client):
        response = client.get("/api/v1/clients/", headers={"Authorization": "Bearer not-a-token"})

        self.assert_unauthorized(response)
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_header_overrides_token_organization(self, client, db_session, tenant_a, tenant_b):
        create_member(db_session, tenant_b.organization, "alice@alpha.example.com", UserRole.ACCOUNTANT)
        headers = bearer(tenant_a.user, tenant_a.organization)
        headers["X-Organization-ID"] = str(tenant_b.organization.id)

        response = client.get("/api/v1/organizations/current", headers=headers)

        self.assert_success_response(response)
        assert response.json()["id"] == str(tenant_b.organization.id)

    def test_header_for_foreign_organization_is_denied(self, client, tenant_a, tenant_b, auth_headers_a):
        headers = {**auth_headers_a, "X-Organization-ID": str(tenant_b.organization.id)}

        self.assert_forbidden(client.get("/api/v1/clients/", headers=headers))

    def test_revoked_membership_takes_effect_immediately(self, client, db_session, tenant_a, auth_headers_a):
        db_session.query(OrganizationMembership).filter(
            OrganizationMembership.user_id == tenant_a.user.id
        ).update({"active": False})
        db_session.commit()

        self.assert_forbidden(client.get("/api/v1/clients/", headers=auth_headers_a))

    def test_me(self, client, tenant_a, auth_headers_a):
        response = client.get("/api/v1/auth/me", headers=auth_headers_a)

        self.assert_success_response(response)
        data = response.json()
        assert data["user"]["id"] == str(tenant_a.user.id)
        assert data["organizations"] == [
            {"id": str(tenant_a.organization.id), "name": "Alpha Accounting", "role": "admin"}
        ]
