"""
Integration tests for the broker dispatch board.

Create dispatch -> split across lease haulers -> list, over HTTP, plus the
capacity and status rules on the domain class.
"""

from datetime import datetime, timezone

import pytest

from haulage.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from haulage.app.domain.dispatch.dispatch_board import DispatchBoard
from haulage.app.models.dispatch_enums import DispatchStatus
from haulage.app.models.enums import UserRole
from haulage.app.services.audit import AuditAction, get_audit_trail

DAY = datetime(2026, 3, 3, tzinfo=timezone.utc)


def dispatch_payload(**overrides):
    payload = {
        "job_name": "I-95 Widening",
        "date": DAY.isoformat(),
        "start_time": "06:30",
        "truck_type": "Side Dump",
        "quantity": 5,
        "material_type": "A1A",
        "material_from": "North Pit",
        "delivered_to": "Mile 12 Fill Site",
        "travel_time": 35,
    }
    payload.update(overrides)
    return payload


async def create_dispatch(client, headers, **overrides):
    return await client.post("/v1/dispatches", json=dispatch_payload(**overrides), headers=headers)


async def assign(client, headers, dispatch_id, company_id, quantity):
    return await client.post(
        f"/v1/dispatches/{dispatch_id}/assign",
        json={"company_id": company_id, "quantity": quantity},
        headers=headers
    )


# --- Create and list ---

@pytest.mark.asyncio
async def test_create_dispatch_starts_as_created(client, broker, broker_headers):
    response = await create_dispatch(client, broker_headers)

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["dispatch"]["status"] == "created"
    assert data["dispatch"]["broker_id"] == broker.id
    assert data["dispatch"]["travel_time"] == 35
    assert data["assignments"] == []
    assert data["trucks_assigned"] == 0
    assert data["trucks_unassigned"] == 5


@pytest.mark.asyncio
async def test_create_dispatch_with_assignments(client, broker_headers, companies):
    response = await create_dispatch(
        client, broker_headers,
        assignments=[
            {"company_id": companies["acme"].id, "quantity": 3},
            {"company_id": companies["coastal"].id, "quantity": 1},
        ]
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["dispatch"]["status"] == "assigned_to_lh"
    assert [a["quantity"] for a in data["assignments"]] == [3, 1]
    assert data["trucks_unassigned"] == 1


@pytest.mark.asyncio
async def test_create_dispatch_validates_fields(client, broker_headers):
    no_trucks = await create_dispatch(client, broker_headers, quantity=0)
    no_job = await create_dispatch(client, broker_headers, job_name="")

    assert no_trucks.status_code == 422
    assert no_job.status_code == 422


@pytest.mark.asyncio
async def test_create_dispatch_unknown_job(client, broker_headers):
    response = await create_dispatch(client, broker_headers, job_id=4242)

    assert response.status_code == 404
    assert response.json()["details"] == {"resource": "Job", "id": 4242}


@pytest.mark.asyncio
async def test_create_dispatch_over_assigned(client, broker_headers, companies):
    response = await create_dispatch(
        client, broker_headers, quantity=2,
        assignments=[{"company_id": companies["acme"].id, "quantity": 3}]
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    listed = await client.get("/v1/dispatches", headers=broker_headers)
    assert listed.json() == []


@pytest.mark.asyncio
async def test_list_shows_only_own_dispatches(client, broker_headers, other_broker, headers_for):
    await create_dispatch(client, broker_headers, job_name="Mine")
    await create_dispatch(client, headers_for(other_broker), job_name="Theirs")

    response = await client.get("/v1/dispatches", headers=broker_headers)

    assert response.status_code == 200
    assert [d["dispatch"]["job_name"] for d in response.json()] == ["Mine"]


@pytest.mark.asyncio
async def test_admin_sees_every_dispatch(client, make_user, broker_headers, other_broker, headers_for):
    admin = await make_user("admin_ada", role=UserRole.ADMIN)
    await create_dispatch(client, broker_headers)
    await create_dispatch(client, headers_for(other_broker))

    response = await client.get("/v1/dispatches", headers=headers_for(admin))

    assert response.status_code == 200
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_drivers_cannot_use_dispatch_board(client, driver_headers):
    created = await create_dispatch(client, driver_headers)
    listed = await client.get("/v1/dispatches", headers=driver_headers)
    companies = await client.get("/v1/broker/lease-hauler-companies", headers=driver_headers)

    assert created.status_code == 403
    assert listed.status_code == 403
    assert companies.status_code == 403


# --- Assign to lease haulers ---

@pytest.mark.asyncio
async def test_assign_moves_dispatch_to_assigned_to_lh(client, broker, broker_headers, companies, db_session):
    dispatch_id = (await create_dispatch(client, broker_headers)).json()["dispatch"]["id"]

    response = await assign(client, broker_headers, dispatch_id, companies["acme"].id, 3)

    assert response.status_code == 201, response.text
    assignment = response.json()
    assert assignment["dispatch_id"] == dispatch_id
    assert assignment["company_id"] == companies["acme"].id
    assert assignment["quantity"] == 3
    assert assignment["assigned_by"] == broker.id

    detail = (await client.get(f"/v1/dispatches/{dispatch_id}", headers=broker_headers)).json()
    assert detail["dispatch"]["status"] == "assigned_to_lh"
    assert detail["trucks_assigned"] == 3
    assert detail["trucks_unassigned"] == 2

    trail = await get_audit_trail(db_session, actor_id=broker.id, action=AuditAction.DISPATCH_ASSIGNED)
    assert len(trail) == 1
    assert trail[0].meta_data["quantity"] == 3


@pytest.mark.asyncio
async def test_assign_splits_across_companies_up_to_quantity(client, broker_headers, companies):
    dispatch_id = (await create_dispatch(client, broker_headers, quantity=4)).json()["dispatch"]["id"]

    first = await assign(client, broker_headers, dispatch_id, companies["acme"].id, 3)
    second = await assign(client, broker_headers, dispatch_id, companies["coastal"].id, 1)
    overflow = await assign(client, broker_headers, dispatch_id, companies["coastal"].id, 1)

    assert first.status_code == 201
    assert second.status_code == 201
    assert overflow.status_code == 400
    assert overflow.json()["details"]["assigned"] == 4

    detail = (await client.get(f"/v1/dispatches/{dispatch_id}", headers=broker_headers)).json()
    assert detail["trucks_unassigned"] == 0
    assert len(detail["assignments"]) == 2


@pytest.mark.asyncio
async def test_assign_requires_a_lease_hauler(client, broker_headers, companies):
    dispatch_id = (await create_dispatch(client, broker_headers)).json()["dispatch"]["id"]

    not_leasing = await assign(client, broker_headers, dispatch_id, companies["quarry"].id, 1)
    unknown = await assign(client, broker_headers, dispatch_id, 4242, 1)
    zero = await assign(client, broker_headers, dispatch_id, companies["acme"].id, 0)

    assert not_leasing.status_code == 400
    assert unknown.status_code == 404
    assert zero.status_code == 422

    detail = (await client.get(f"/v1/dispatches/{dispatch_id}", headers=broker_headers)).json()
    assert detail["dispatch"]["status"] == "created"


@pytest.mark.asyncio
async def test_assign_unknown_dispatch(client, broker_headers, companies):
    response = await assign(client, broker_headers, 4242, companies["acme"].id, 1)

    assert response.status_code == 404
    assert response.json()["details"]["resource"] == "Dispatch"


@pytest.mark.asyncio
async def test_other_broker_cannot_assign(client, broker_headers, other_broker, headers_for, companies):
    dispatch_id = (await create_dispatch(client, broker_headers)).json()["dispatch"]["id"]

    response = await assign(client, headers_for(other_broker), dispatch_id, companies["acme"].id, 1)
    lookup = await client.get(f"/v1/dispatches/{dispatch_id}", headers=headers_for(other_broker))

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"
    assert lookup.status_code == 403


# --- Lease-hauler companies ---

@pytest.mark.asyncio
async def test_lease_hauler_companies(client, broker_headers, companies):
    created = await client.post(
        "/v1/broker/lease-hauler-companies",
        json={"name": "Bay Aggregates", "contact_email": "ops@bay.example"},
        headers=broker_headers
    )
    assert created.status_code == 201
    assert created.json()["is_lease_hauler"] is True

    response = await client.get("/v1/broker/lease-hauler-companies", headers=broker_headers)

    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Acme Hauling", "Bay Aggregates", "Coastal Trucking"]


# --- Domain ---

@pytest.mark.asyncio
async def test_closed_dispatch_cannot_be_assigned(db_session, broker, companies):
    dispatch = await DispatchBoard.create(db_session, broker.id, {
        "job_name": "Harbor Fill",
        "date": DAY,
        "start_time": "07:00",
        "truck_type": "Tri-Axle",
        "quantity": 2,
        "material_type": "Fill",
        "material_from": "North Pit",
        "delivered_to": "Harbor",
    })
    dispatch.status = DispatchStatus.CANCELLED
    await db_session.commit()

    with pytest.raises(ConflictError):
        await DispatchBoard.assign(db_session, dispatch.id, companies["acme"].id, 1, broker.id)


@pytest.mark.asyncio
async def test_assign_keeps_assigned_status_and_checks_quantity(db_session, broker, companies):
    dispatch = await DispatchBoard.create(
        db_session, broker.id,
        {
            "job_name": "Harbor Fill",
            "date": DAY,
            "start_time": "07:00",
            "truck_type": "Tri-Axle",
            "quantity": 3,
            "material_type": "Fill",
            "material_from": "North Pit",
            "delivered_to": "Harbor",
        },
        assignments=[{"company_id": companies["acme"].id, "quantity": 1}]
    )
    assert dispatch.status == DispatchStatus.ASSIGNED_TO_LH

    await DispatchBoard.assign(db_session, dispatch.id, companies["coastal"].id, 2, broker.id)
    refreshed = await DispatchBoard.get(db_session, dispatch.id)
    assert refreshed.status == DispatchStatus.ASSIGNED_TO_LH

    with pytest.raises(ValidationError):
        await DispatchBoard.assign(db_session, dispatch.id, companies["coastal"].id, -1, broker.id)
    with pytest.raises(NotFoundError):
        await DispatchBoard.get(db_session, 4242)
