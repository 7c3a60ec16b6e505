import pytest
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from sqlalchemy import event, update
from sqlalchemy.orm import Session

from models import GroupBuying


@contextmanager
def join_lands_first(group_buying_id, quantity):
    """Apply another vendor's counter bump right after the next flush, before the join's own UPDATE."""
    applied = []

    def bump_counters(session, flush_context):
        if applied:
            return
        applied.append(True)
        session.connection().execute(
            update(GroupBuying)
            .where(GroupBuying.id == group_buying_id)
            .values(
                current_quantity=GroupBuying.current_quantity + quantity,
                current_participants=GroupBuying.current_participants + 1
            )
        )

    event.listen(Session, "after_flush", bump_counters)
    try:
        yield applied
    finally:
        event.remove(Session, "after_flush", bump_counters)


@pytest.fixture
async def group_buy(client, vendor_headers, group_buy_payload):
    response = await client.post("/group-buys/", json=group_buy_payload(), headers=vendor_headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateGroupBuyAPI:

    async def test_discounted_price_fixed_at_creation(self, group_buy, vendor_id, supplier_id, product):
        assert group_buy["discounted_price"] == 45.0
        assert group_buy["original_price"] == 50.0
        assert group_buy["current_quantity"] == 0
        assert group_buy["current_participants"] == 0
        assert group_buy["status"] == "active"
        assert group_buy["created_by"] == str(vendor_id)
        assert group_buy["supplier_id"] == str(supplier_id)
        assert group_buy["product_id"] == product["id"]

    async def test_price_change_does_not_touch_group_buy(self, client, supplier_headers, group_buy, product):
        await client.put(f"/products/{product['id']}", json={"price": 100.0}, headers=supplier_headers)

        response = await client.get(f"/group-buys/{group_buy['id']}")

        assert response.json()["discounted_price"] == 45.0

    async def test_twenty_percent_off_hundred(self, client, supplier_headers, vendor_headers, sample_product_data):
        product_response = await client.post(
            "/products/",
            json={**sample_product_data, "name": "Paneer", "price": 100.0},
            headers=supplier_headers
        )
        payload = {
            "product_id": product_response.json()["id"],
            "title": "Paneer pool",
            "target_quantity": 20,
            "discount_percentage": 20,
            "min_participants": 1,
            "max_participants": 3,
            "deadline": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
        }

        response = await client.post("/group-buys/", json=payload, headers=vendor_headers)

        assert response.status_code == 201
        assert response.json()["discounted_price"] == 80.0

    async def test_supplier_cannot_create(self, client, supplier_headers, group_buy_payload):
        response = await client.post("/group-buys/", json=group_buy_payload(), headers=supplier_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Only vendors can create group buys"

    async def test_missing_product_not_found(self, client, vendor_headers, group_buy_payload):
        response = await client.post(
            "/group-buys/",
            json=group_buy_payload(product_id=str(uuid.uuid4())),
            headers=vendor_headers
        )

        assert response.status_code == 404

    async def test_min_participants_above_max_rejected(self, client, vendor_headers, group_buy_payload):
        response = await client.post(
            "/group-buys/",
            json=group_buy_payload(min_participants=6, max_participants=5),
            headers=vendor_headers
        )

        assert response.status_code == 422

    async def test_discount_over_hundred_rejected(self, client, vendor_headers, group_buy_payload):
        response = await client.post(
            "/group-buys/",
            json=group_buy_payload(discount_percentage=120),
            headers=vendor_headers
        )

        assert response.status_code == 422


class TestJoinGroupBuyAPI:

    async def test_joins_accumulate_counters(self, client, vendor_headers, second_vendor_headers, group_buy):
        response = await client.post(
            f"/group-buys/{group_buy['id']}/join",
            json={"quantity": 30},
            headers=vendor_headers
        )
        assert response.status_code == 200
        assert response.json()["current_quantity"] == 30
        assert response.json()["current_participants"] == 1

        response = await client.post(
            f"/group-buys/{group_buy['id']}/join",
            json={"quantity": 40},
            headers=second_vendor_headers
        )
        assert response.status_code == 200
        assert response.json()["current_quantity"] == 70
        assert response.json()["current_participants"] == 2

    async def test_second_join_by_same_vendor_rejected(self, client, vendor_headers, group_buy):
        await client.post(f"/group-buys/{group_buy['id']}/join", json={"quantity": 30}, headers=vendor_headers)

        response = await client.post(
            f"/group-buys/{group_buy['id']}/join",
            json={"quantity": 5},
            headers=vendor_headers
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Already participating in this group buy"

        detail = await client.get(f"/group-buys/{group_buy['id']}")
        assert detail.json()["current_quantity"] == 30
        assert detail.json()["current_participants"] == 1

    async def test_full_group_buy_rejects_joins(self, client, vendor_headers, create_profile, sample_vendor_profile, group_buy_payload):
        created = await client.post(
            "/group-buys/",
            json=group_buy_payload(min_participants=1, max_participants=1),
            headers=vendor_headers
        )
        group_id = created.json()["id"]

        response = await client.post(f"/group-buys/{group_id}/join", json={"quantity": 10}, headers=vendor_headers)
        assert response.status_code == 200

        other_headers = await create_profile(uuid.uuid4(), sample_vendor_profile)
        response = await client.post(f"/group-buys/{group_id}/join", json={"quantity": 10}, headers=other_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == "Group buy is full"

    async def test_join_may_overshoot_target(self, client, vendor_headers, group_buy):
        response = await client.post(
            f"/group-buys/{group_buy['id']}/join",
            json={"quantity": 250},
            headers=vendor_headers
        )

        assert response.status_code == 200
        assert response.json()["current_quantity"] == 250

    async def test_supplier_cannot_join(self, client, supplier_headers, group_buy):
        response = await client.post(
            f"/group-buys/{group_buy['id']}/join",
            json={"quantity": 10},
            headers=supplier_headers
        )

        assert response.status_code == 403

    async def test_join_missing_group_buy_not_found(self, client, vendor_headers):
        response = await client.post(
            f"/group-buys/{uuid.uuid4()}/join",
            json={"quantity": 10},
            headers=vendor_headers
        )

        assert response.status_code == 404

    async def test_join_inactive_group_buy_rejected(self, client, vendor_headers, group_buy, db_session):
        await db_session.execute(
            update(GroupBuying)
            .where(GroupBuying.id == uuid.UUID(group_buy["id"]))
            .values(status="cancelled")
        )
        await db_session.commit()

        response = await client.post(
            f"/group-buys/{group_buy['id']}/join",
            json={"quantity": 10},
            headers=vendor_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Group buy not available"


class TestConcurrentJoinAPI:

    async def test_join_after_another_join_is_counted(self, client, vendor_headers, group_buy):
        with join_lands_first(uuid.UUID(group_buy["id"]), quantity=5) as applied:
            response = await client.post(
                f"/group-buys/{group_buy['id']}/join",
                json={"quantity": 30},
                headers=vendor_headers
            )

        assert applied
        assert response.status_code == 200, response.text
        assert response.json()["current_quantity"] == 35
        assert response.json()["current_participants"] == 2

        detail = (await client.get(f"/group-buys/{group_buy['id']}")).json()
        assert detail["current_quantity"] == 35
        assert detail["current_participants"] == 2

    async def test_join_racing_into_last_slot_is_full(self, client, vendor_headers, group_buy_payload):
        created = await client.post(
            "/group-buys/",
            json=group_buy_payload(min_participants=1, max_participants=1),
            headers=vendor_headers
        )
        group_id = created.json()["id"]

        with join_lands_first(uuid.UUID(group_id), quantity=5) as applied:
            response = await client.post(
                f"/group-buys/{group_id}/join",
                json={"quantity": 30},
                headers=vendor_headers
            )

        assert applied
        assert response.status_code == 409
        assert response.json()["detail"] == "Group buy is full"

        # The rejected join leaves no participant row behind
        detail = (await client.get(f"/group-buys/{group_id}")).json()
        assert detail["participants"] == []


class TestGroupBuyQueriesAPI:

    async def test_active_group_buys_enriched(self, client, group_buy):
        response = await client.get("/group-buys/active")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["product_name"] == "Tomatoes"
        assert data[0]["product_unit"] == "kg"
        assert data[0]["supplier_name"] == "Fresh Farms Wholesale"

    async def test_active_excludes_past_deadline(self, client, vendor_headers, group_buy_payload):
        past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        await client.post("/group-buys/", json=group_buy_payload(deadline=past), headers=vendor_headers)

        response = await client.get("/group-buys/active")

        assert response.json() == []

    async def test_my_group_buys(self, client, vendor_headers, second_vendor_headers, group_buy):
        await client.post(f"/group-buys/{group_buy['id']}/join", json={"quantity": 40}, headers=second_vendor_headers)

        creator_view = (await client.get("/group-buys/mine", headers=vendor_headers)).json()
        assert [g["id"] for g in creator_view["created"]] == [group_buy["id"]]
        assert creator_view["participating"] == []

        joiner_view = (await client.get("/group-buys/mine", headers=second_vendor_headers)).json()
        assert joiner_view["created"] == []
        assert len(joiner_view["participating"]) == 1
        assert joiner_view["participating"][0]["id"] == group_buy["id"]
        assert joiner_view["participating"][0]["user_quantity"] == 40

    async def test_my_group_buys_signed_out(self, client):
        response = await client.get("/group-buys/mine")

        assert response.status_code == 200
        assert response.json() == {"created": [], "participating": []}

    async def test_detail_lists_participants(self, client, vendor_headers, group_buy):
        await client.post(f"/group-buys/{group_buy['id']}/join", json={"quantity": 30}, headers=vendor_headers)

        response = await client.get(f"/group-buys/{group_buy['id']}")

        assert response.status_code == 200
        participants = response.json()["participants"]
        assert len(participants) == 1
        assert participants[0]["vendor_name"] == "Raju Chaat Corner"
        assert participants[0]["quantity"] == 30

    async def test_detail_missing_not_found(self, client):
        response = await client.get(f"/group-buys/{uuid.uuid4()}")

        assert response.status_code == 404


class TestProcessExpiredAPI:

    async def test_requires_internal_secret(self, client):
        response = await client.post("/group-buys/process-expired", headers={"X-Internal-Secret": "wrong"})

        assert response.status_code == 403

    async def test_closes_due_group_buys(self, client, vendor_headers, second_vendor_headers, group_buy_payload):
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()

        reached = (await client.post(
            "/group-buys/",
            json=group_buy_payload(deadline=past, target_quantity=50, min_participants=2),
            headers=vendor_headers
        )).json()
        missed = (await client.post(
            "/group-buys/",
            json=group_buy_payload(deadline=past, target_quantity=500, min_participants=2),
            headers=vendor_headers
        )).json()
        open_buy = (await client.post("/group-buys/", json=group_buy_payload(), headers=vendor_headers)).json()

        for headers, quantity in ((vendor_headers, 30), (second_vendor_headers, 30)):
            await client.post(f"/group-buys/{reached['id']}/join", json={"quantity": quantity}, headers=headers)
            await client.post(f"/group-buys/{missed['id']}/join", json={"quantity": quantity}, headers=headers)

        response = await client.post(
            "/group-buys/process-expired",
            headers={"X-Internal-Secret": "test-internal-secret"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["processed_count"] == 2
        assert data["completed_count"] == 1
        assert data["expired_count"] == 1

        assert (await client.get(f"/group-buys/{reached['id']}")).json()["status"] == "completed"
        assert (await client.get(f"/group-buys/{missed['id']}")).json()["status"] == "expired"
        assert (await client.get(f"/group-buys/{open_buy['id']}")).json()["status"] == "active"


class TestClosingRules:

    def test_resolve_closing_status(self):
        from types import SimpleNamespace
        from routers.group_buying.helpers import resolve_closing_status
        from routers.group_buying.schemas import GroupBuyStatus

        def make(current_quantity, participants):
            return SimpleNamespace(
                current_quantity=current_quantity,
                target_quantity=100,
                current_participants=participants,
                min_participants=2
            )

        assert resolve_closing_status(make(100, 2)) == GroupBuyStatus.COMPLETED
        assert resolve_closing_status(make(120, 3)) == GroupBuyStatus.COMPLETED
        assert resolve_closing_status(make(99, 5)) == GroupBuyStatus.EXPIRED
        assert resolve_closing_status(make(150, 1)) == GroupBuyStatus.EXPIRED

    def test_calculate_discounted_price(self):
        from routers.group_buying.helpers import calculate_discounted_price

        assert calculate_discounted_price(100, 20) == 80.0
        assert calculate_discounted_price(50, 0) == 50.0
        assert calculate_discounted_price(50, 100) == 0.0
