"""HTTP surface tests for pickup orders and the expiration trigger."""

from datetime import timedelta
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from pickup_orders.core.config import settings
from pickup_orders.db import session as db_session
from pickup_orders.db.session import build_engine
from pickup_orders.main import app
from pickup_orders.schemas.order import OrderDraft
from pickup_orders.services.order_store import create_order, get_order_by_id, update_order_status
from pickup_orders.utils.time import utcnow


def _order_payload(**overrides) -> dict:
    payload = {
        "customer_name": "Jamie Rivera",
        "customer_phone": "+15125550100",
        "customer_email": "jamie@example.com",
        "items": [
            {"product_id": "p-1", "product_name": "Glass Pipe", "category": "glass", "quantity": 2,
             "price_per_unit": "15.00", "total_price": "30.00"},
            {"product_id": "p-2", "product_name": "Lighter", "quantity": 1,
             "price_per_unit": "9.26", "total_price": "9.26"},
        ],
        "subtotal": "39.26",
        "tax": "3.24",
        "total": "42.50",
        "store_location": "cameron-rd",
    }
    payload.update(overrides)
    return payload


def _use_test_database(tmp_path: Path, monkeypatch, name: str) -> sessionmaker:
    engine = build_engine(f"sqlite:///{tmp_path / name}")
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    return testing_session_local


def test_root_reports_status(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "root.db")

    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"app": settings.app_name, "status": "ok"}


def test_place_order_returns_pending_document(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "place.db")

    with TestClient(app) as client:
        response = client.post("/api/v1/orders", json=_order_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["order_number"] == "ZS-000001"
    assert body["status"] == "pending"
    assert body["timeline"]["placed_at"] is not None
    assert body["timeline"]["ready_at"] is None
    assert [item["product_id"] for item in body["items"]] == ["p-1", "p-2"]
    assert body["items"][0]["replacement_preference"] == "substitute"
    assert body["communications"] == []


def test_place_order_validates_payload(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "validate.db")

    with TestClient(app) as client:
        bad_location = client.post("/api/v1/orders", json=_order_payload(store_location="downtown"))
        no_items = client.post("/api/v1/orders", json=_order_payload(items=[]))

    assert bad_location.status_code == 422
    assert no_items.status_code == 422


def test_place_order_requires_contact_for_notification_method(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "contact.db")

    with TestClient(app) as client:
        sms_without_phone = client.post("/api/v1/orders", json=_order_payload(customer_phone="  "))
        email_without_address = client.post(
            "/api/v1/orders",
            json=_order_payload(notification_method="email", customer_email=None),
        )
        email_order = client.post("/api/v1/orders", json=_order_payload(notification_method="email"))
        listing = client.get("/api/v1/orders").json()

    assert sms_without_phone.status_code == 422
    assert "Phone number is required" in sms_without_phone.text
    assert email_without_address.status_code == 422
    assert "Email address is required" in email_without_address.text
    assert email_order.status_code == 201
    assert email_order.json()["notification_method"] == "email"
    assert listing["count"] == 1


def test_status_flow_and_illegal_transition(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "status.db")

    with TestClient(app) as client:
        order_id = client.post("/api/v1/orders", json=_order_payload()).json()["id"]

        illegal = client.post(f"/api/v1/orders/{order_id}/status", json={"status": "picked-up"})
        assert illegal.status_code == 409

        confirmed = client.post(f"/api/v1/orders/{order_id}/status", json={"status": "confirmed"})
        assert confirmed.status_code == 200
        assert confirmed.json()["timeline"]["confirmed_at"] is not None

        ready = client.post(
            f"/api/v1/orders/{order_id}/status",
            json={"status": "ready", "store_notes": "Shelf B"},
        )
        assert ready.status_code == 200
        body = ready.json()
        assert body["status"] == "ready"
        assert body["store_notes"] == "Shelf B"
        assert body["timeline"]["pickup_deadline"] is not None

        picked_up = client.post(f"/api/v1/orders/{order_id}/status", json={"status": "picked-up"})
        assert picked_up.status_code == 200

        reopen = client.post(f"/api/v1/orders/{order_id}/status", json={"status": "pending"})
        assert reopen.status_code == 409
        assert client.get(f"/api/v1/orders/{order_id}").json()["status"] == "picked-up"

        unknown_status = client.post(f"/api/v1/orders/{order_id}/status", json={"status": "lost"})
        assert unknown_status.status_code == 422

        missing = client.post("/api/v1/orders/does-not-exist/status", json={"status": "confirmed"})
        assert missing.status_code == 404


def test_list_orders_filters_and_projects_summaries(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "list.db")

    with TestClient(app) as client:
        first_id = client.post("/api/v1/orders", json=_order_payload()).json()["id"]
        second_id = client.post(
            "/api/v1/orders",
            json=_order_payload(customer_name="Casey", customer_phone="+17375550199", store_location="william-cannon"),
        ).json()["id"]
        client.post(f"/api/v1/orders/{second_id}/status", json={"status": "confirmed"})
        client.post(f"/api/v1/orders/{second_id}/status", json={"status": "ready"})

        everything = client.get("/api/v1/orders").json()
        assert everything["count"] == 2
        assert {order["id"] for order in everything["orders"]} == {first_id, second_id}

        ready_only = client.get("/api/v1/orders", params={"status": "ready,bogus"}).json()
        assert [order["id"] for order in ready_only["orders"]] == [second_id]
        summary = ready_only["orders"][0]
        assert summary["item_count"] == 3
        assert summary["time_remaining"] in (59, 60)
        assert summary["is_expiring_soon"] is False

        by_location = client.get("/api/v1/orders", params={"location": "cameron-rd"}).json()
        assert [order["id"] for order in by_location["orders"]] == [first_id]

        ignored_location = client.get("/api/v1/orders", params={"location": "downtown"}).json()
        assert ignored_location["count"] == 2

        searched = client.get("/api/v1/orders", params={"search": "casey"}).json()
        assert [order["id"] for order in searched["orders"]] == [second_id]


def test_stats_endpoint(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "stats.db")

    with TestClient(app) as client:
        client.post("/api/v1/orders", json=_order_payload())
        client.post("/api/v1/orders", json=_order_payload(store_location="william-cannon"))
        response = client.get("/api/v1/orders/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["today"]["total"] == 2
    assert body["today"]["pending"] == 2
    assert body["this_week"]["total"] == 2
    assert body["by_location"] == {"william-cannon": 1, "cameron-rd": 1}


def test_track_order_requires_matching_phone(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "track.db")

    with TestClient(app) as client:
        order_number = client.post("/api/v1/orders", json=_order_payload()).json()["order_number"]

        missing_params = client.get("/api/v1/orders/track", params={"order_number": order_number})
        unknown = client.get("/api/v1/orders/track", params={"order_number": "ZS-999999", "phone": "5125550100"})
        wrong_phone = client.get(
            "/api/v1/orders/track", params={"order_number": order_number, "phone": "+17375550199"}
        )
        matched = client.get(
            "/api/v1/orders/track",
            params={"order_number": order_number.lower(), "phone": "+1 (512) 555-0100"},
        )

    assert missing_params.status_code == 400
    assert unknown.status_code == 404
    assert wrong_phone.status_code == 403
    assert matched.status_code == 200
    assert matched.json()["order_number"] == order_number


def test_edit_log_and_delete_order(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "edit.db")

    with TestClient(app) as client:
        order_id = client.post("/api/v1/orders", json=_order_payload()).json()["id"]

        edited = client.patch(
            f"/api/v1/orders/{order_id}",
            json={"store_notes": "Call on arrival", "store_location": "william-cannon"},
        )
        assert edited.status_code == 200
        assert edited.json()["store_notes"] == "Call on arrival"
        assert edited.json()["store_location"] == "william-cannon"

        cleared = client.patch(f"/api/v1/orders/{order_id}", json={"customer_phone": None})
        assert cleared.status_code == 400

        logged = client.post(
            f"/api/v1/orders/{order_id}/communications",
            json={"direction": "to-customer", "method": "sms", "message": "Your order is in", "status": "sent"},
        )
        assert logged.status_code == 200
        assert [entry["message"] for entry in logged.json()["communications"]] == ["Your order is in"]

        missing_edit = client.patch("/api/v1/orders/does-not-exist", json={"store_notes": "x"})
        assert missing_edit.status_code == 404

        deleted = client.delete(f"/api/v1/orders/{order_id}")
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Order deleted"}
        assert client.get(f"/api/v1/orders/{order_id}").status_code == 404
        assert client.delete(f"/api/v1/orders/{order_id}").status_code == 404


def test_cron_endpoint_requires_secret_and_sweeps(tmp_path: Path, monkeypatch) -> None:
    testing_session_local = _use_test_database(tmp_path, monkeypatch, "cron.db")
    monkeypatch.setattr(settings, "cron_secret", "s3cret")

    with TestClient(app) as client:
        now = utcnow()
        with testing_session_local() as db:
            order = create_order(db, OrderDraft(**_order_payload()), now=now - timedelta(hours=3))
            order_id = order.id
            update_order_status(db, order_id, "confirmed", now=now - timedelta(hours=2, minutes=5))
            update_order_status(db, order_id, "ready", now=now - timedelta(hours=2))

        unauthorized = client.post("/api/v1/cron/expire-orders")
        wrong_secret = client.get("/api/v1/cron/expire-orders", headers={"Authorization": "Bearer nope"})
        assert unauthorized.status_code == 401
        assert wrong_secret.status_code == 401

        response = client.get("/api/v1/cron/expire-orders", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["checked"] == 1
        assert body["expired"] == [order_id]
        assert body["failed"] == []

        with testing_session_local() as db:
            assert get_order_by_id(db, order_id).status == "no-show"


def test_unconfigured_store_returns_service_unavailable(tmp_path: Path, monkeypatch) -> None:
    _use_test_database(tmp_path, monkeypatch, "unconfigured.db")

    with TestClient(app) as client:
        monkeypatch.setattr(settings, "database_url", "")
        response = client.get("/api/v1/orders")

    assert response.status_code == 503
    assert response.json() == {"detail": "Order store is unavailable"}
