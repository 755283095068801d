from unittest.mock import patch

SPACE_PAYLOAD = {
    "name": "Salle Étage",
    "spaceType": "meeting-room",
    "minCapacity": 2,
    "maxCapacity": 10,
    "pricing": {
        "hourly": 25,
        "daily": 150,
        "tiers": [{"minPeople": 1, "maxPeople": 6, "hourlyRate": 25, "dailyRate": 150}],
    },
    "depositPolicy": {"enabled": True, "percentage": 30, "minimumAmount": 1000},
}


class TestPublicSpaces:
    def test_lists_active_only(self, guest_client, make_space):
        make_space()
        make_space(name="Ancienne salle", slug="ancienne-salle", is_active=False)

        response = guest_client.get("/spaces")

        assert response.status_code == 200
        assert [s["slug"] for s in response.json()] == ["salle-verriere"]

    def test_inactive_space_is_hidden(self, guest_client, make_space):
        space = make_space(is_active=False)
        assert guest_client.get(f"/spaces/{space.id}").status_code == 404

    def test_cached_payload_is_served(self, guest_client):
        cached = [
            {
                "id": 99,
                "name": "Cached",
                "slug": "cached",
                "spaceType": "open-space",
                "minCapacity": 1,
                "maxCapacity": 20,
                "pricing": {},
                "isActive": True,
            }
        ]
        with patch("coworking_api.cache.cache.get", return_value=cached):
            response = guest_client.get("/spaces")
        assert response.json()[0]["slug"] == "cached"


class TestAdminSpaces:
    def test_create_builds_slug_and_snake_case_pricing(self, admin_client, db):
        with patch("coworking_api.domain.spaces.service.invalidate_spaces_cache") as invalidate:
            response = admin_client.post("/spaces", json=SPACE_PAYLOAD)

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "salle-etage"
        assert body["pricing"]["tiers"][0]["hourly_rate"] == 25
        assert body["depositPolicy"]["minimum_amount"] == 1000
        invalidate.assert_called_once()

    def test_duplicate_slug(self, admin_client, make_space):
        make_space(slug="salle-etage")
        response = admin_client.post("/spaces", json=SPACE_PAYLOAD)
        assert response.status_code == 409

    def test_capacity_range_checked(self, admin_client):
        response = admin_client.post("/spaces", json={**SPACE_PAYLOAD, "minCapacity": 12})
        assert response.status_code == 422

    def test_invalid_tier(self, admin_client):
        pricing = {"tiers": [{"minPeople": 5, "maxPeople": 2}]}
        response = admin_client.post("/spaces", json={**SPACE_PAYLOAD, "pricing": pricing})
        assert response.status_code == 422

    def test_update_checks_capacity_against_stored_values(self, admin_client, make_space):
        space = make_space(min_capacity=4, max_capacity=8)
        response = admin_client.patch(f"/spaces/{space.id}", json={"maxCapacity": 2})
        assert response.status_code == 400

    def test_update_can_reactivate(self, admin_client, make_space):
        space = make_space(is_active=False)
        response = admin_client.patch(f"/spaces/{space.id}", json={"isActive": True, "name": "Verrière"})
        assert response.status_code == 200
        assert response.json()["isActive"] is True
        assert response.json()["name"] == "Verrière"

    def test_soft_delete(self, admin_client, make_space, db):
        space = make_space()
        assert admin_client.delete(f"/spaces/{space.id}").status_code == 200
        db.refresh(space)
        assert space.is_deleted is True
        assert admin_client.get("/spaces/admin/all").json() == []

    def test_requires_admin(self, staff_client):
        assert staff_client.post("/spaces", json=SPACE_PAYLOAD).status_code == 403
