import jwt
import uuid


class TestProfileAPI:

    async def test_create_vendor_profile_sets_trust_score(self, client, auth_headers, vendor_id, sample_vendor_profile):
        """Vendors start with the default trust score and unverified."""
        response = await client.post("/users/profile", json=sample_vendor_profile, headers=auth_headers(vendor_id))

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] == str(vendor_id)
        assert data["role"] == "vendor"
        assert data["trust_score"] == 5.0
        assert data["is_verified"] is False

    async def test_create_supplier_profile_has_no_trust_score(self, client, auth_headers, supplier_id, sample_supplier_profile):
        response = await client.post("/users/profile", json=sample_supplier_profile, headers=auth_headers(supplier_id))

        assert response.status_code == 201
        assert response.json()["trust_score"] is None

    async def test_create_profile_twice_conflicts(self, client, vendor_headers, sample_vendor_profile):
        response = await client.post("/users/profile", json=sample_vendor_profile, headers=vendor_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == "Profile already exists"

    async def test_create_profile_requires_token(self, client, sample_vendor_profile):
        response = await client.post("/users/profile", json=sample_vendor_profile)

        assert response.status_code == 401

    async def test_create_profile_rejects_unknown_role(self, client, auth_headers, sample_vendor_profile):
        response = await client.post(
            "/users/profile",
            json={**sample_vendor_profile, "role": "admin"},
            headers=auth_headers(uuid.uuid4())
        )

        assert response.status_code == 422

    async def test_get_current_profile_merges_email(self, client, vendor_headers, vendor_id):
        response = await client.get("/users/profile/me", headers=vendor_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["business_name"] == "Raju Chaat Corner"
        assert data["email"] == f"{vendor_id}@example.com"

    async def test_get_current_profile_signed_out_is_null(self, client):
        response = await client.get("/users/profile/me")

        assert response.status_code == 200
        assert response.json() is None

    async def test_get_current_profile_without_profile_is_null(self, client, auth_headers):
        response = await client.get("/users/profile/me", headers=auth_headers(uuid.uuid4()))

        assert response.status_code == 200
        assert response.json() is None

    async def test_update_profile_applies_only_sent_fields(self, client, vendor_headers):
        response = await client.put(
            "/users/profile/me",
            json={"city": "Mumbai"},
            headers=vendor_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["city"] == "Mumbai"
        assert data["business_name"] == "Raju Chaat Corner"
        assert data["role"] == "vendor"

    async def test_update_profile_cannot_change_role(self, client, vendor_headers):
        response = await client.put(
            "/users/profile/me",
            json={"role": "supplier"},
            headers=vendor_headers
        )

        assert response.status_code == 200
        assert response.json()["role"] == "vendor"

    async def test_update_profile_without_profile_not_found(self, client, auth_headers):
        response = await client.put(
            "/users/profile/me",
            json={"city": "Mumbai"},
            headers=auth_headers(uuid.uuid4())
        )

        assert response.status_code == 404


class TestIdentityAPI:

    async def test_me_signed_out_is_null(self, client):
        response = await client.get("/auth/me")

        assert response.status_code == 200
        assert response.json() is None

    async def test_me_reports_role_once_onboarded(self, client, supplier_headers, supplier_id):
        response = await client.get("/auth/me", headers=supplier_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == str(supplier_id)
        assert data["role"] == "supplier"
        assert data["has_profile"] is True

    async def test_me_before_onboarding(self, client, auth_headers):
        user_id = uuid.uuid4()
        response = await client.get("/auth/me", headers=auth_headers(user_id))

        assert response.status_code == 200
        data = response.json()
        assert data["role"] is None
        assert data["has_profile"] is False

    async def test_expired_token_is_rejected(self, client, token_factory):
        token = token_factory(uuid.uuid4(), expires_in=-60)
        response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Token expired"

    async def test_token_signed_with_other_secret_is_rejected(self, client):
        token = jwt.encode({"sub": str(uuid.uuid4())}, "some-other-secret-that-is-long-enough-xx", algorithm="HS256")
        response = await client.get("/users/profile/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
