import pytest
from sqlalchemy.exc import IntegrityError

from barbershop.domain.cashier.repository import CashierRepository
from barbershop.domain.cashier.service import CashierService, summary_bucket
from barbershop.errors import ConflictError
from barbershop.models import CashierSession


def open_cashier(client, initial=100):
    return client.post("/cashier/open", json={"initialValue": initial})


def test_open_expense_sale_close_scenario(client, auth, admin, barber, haircut):
    auth["user"] = admin
    assert open_cashier(client, 100).status_code == 200

    order = client.post(
        "/orders",
        json={"barberId": barber.id, "services": [{"itemId": haircut.id}]},
    ).json()
    assert order["total_amount"] == 50
    assert client.put(f"/orders/{order['id']}/close", json={"paymentMethod": "CASH"}).status_code == 200
    assert client.post("/cashier/expense", json={"amount": 20, "description": "Café"}).status_code == 200

    response = client.post("/cashier/close", json={"declaredValue": 130})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "CLOSED"
    assert body["final_value"] == 130
    assert body["discrepancy"] == 0
    assert body["summary"] == {"cash": 50, "card": 0, "pix": 0, "other": 0, "expenses": 20}
    assert [t["type"] for t in body["transactions"]] == ["IN", "OUT"]
    assert body["barber_stats"] == [
        {
            "barber_id": barber.id,
            "barber_name": "John",
            "daily_revenue": 50,
            "daily_tips": 0,
            "service_count": 1,
        }
    ]


def test_second_open_is_rejected(client, auth, admin):
    auth["user"] = admin
    open_cashier(client)

    response = open_cashier(client)

    assert response.status_code == 409
    assert response.json()["code"] == "session_already_open"


def test_database_refuses_a_second_open_session(db, admin):
    db.add(CashierSession(opened_by_id=admin.id, status="OPEN"))
    db.commit()

    db.add(CashierSession(opened_by_id=admin.id, status="OPEN"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_open_that_loses_the_race_is_a_conflict(client, auth, db, monkeypatch, admin):
    auth["user"] = admin
    assert open_cashier(client, 100).status_code == 200

    # The competing admin saw no open session before the winner committed
    monkeypatch.setattr(
        CashierRepository, "get_open_session", staticmethod(lambda db, lock=False: None)
    )
    response = open_cashier(client, 50)

    assert response.status_code == 409
    assert response.json()["code"] == "session_already_open"
    assert db.query(CashierSession).count() == 1


def test_open_session_race_leaves_service_usable(db, monkeypatch, admin):
    service = CashierService(db)
    service.open_session(100, admin)

    with monkeypatch.context() as patched:
        patched.setattr(
            CashierRepository, "get_open_session", staticmethod(lambda db, lock=False: None)
        )
        with pytest.raises(ConflictError) as exc_info:
            service.open_session(50, admin)

    assert exc_info.value.code == "session_already_open"
    assert service.require_open_session().initial_value == 100


def test_reopen_after_close(client, auth, admin):
    auth["user"] = admin
    open_cashier(client)
    client.post("/cashier/close", json={})

    assert open_cashier(client, 50).status_code == 200


def test_expense_and_close_require_open_session(client, auth, admin):
    auth["user"] = admin

    expense = client.post("/cashier/expense", json={"amount": 10, "description": "Troco"})
    close = client.post("/cashier/close", json={})

    assert expense.status_code == 409
    assert expense.json()["code"] == "no_open_session"
    assert close.status_code == 409


def test_expense_must_be_positive(client, auth, admin):
    auth["user"] = admin
    open_cashier(client)

    assert client.post("/cashier/expense", json={"amount": 0, "description": "x"}).status_code == 422


def test_close_reports_discrepancy(client, auth, admin):
    auth["user"] = admin
    open_cashier(client, 100)

    body = client.post("/cashier/close", json={"declaredValue": 95, "notes": "faltou"}).json()

    assert body["final_value"] == 100
    assert body["declared_value"] == 95
    assert body["discrepancy"] == -5
    assert body["notes"] == "faltou"


def test_other_payment_methods_do_not_count_towards_expected_value(
    client, auth, admin, barber, haircut
):
    auth["user"] = admin
    open_cashier(client, 100)
    order = client.post(
        "/orders", json={"barberId": barber.id, "services": [{"itemId": haircut.id}]}
    ).json()
    client.put(f"/orders/{order['id']}/close", json={})

    body = client.post("/cashier/close", json={}).json()

    assert body["summary"]["other"] == 50
    assert body["final_value"] == 100


def test_status_and_history(client, auth, admin, barber):
    auth["user"] = barber
    assert client.get("/cashier/status").json() == {"isOpen": False, "cashier": None}

    auth["user"] = admin
    open_cashier(client, 10)
    status = client.get("/cashier/status").json()
    assert status["isOpen"] is True
    assert status["cashier"]["initial_value"] == 10

    client.post("/cashier/close", json={})
    history = client.get("/cashier/history").json()
    assert len(history) == 1
    assert history[0]["status"] == "CLOSED"
    assert client.get("/cashier/history", params={"date": "2030-01-07"}).json()[0]["id"] == history[0]["id"]
    assert client.get("/cashier/history", params={"date": "2030-01-08"}).json() == []


def test_only_admin_runs_the_register(client, auth, barber):
    auth["user"] = barber
    assert open_cashier(client).status_code == 403


def test_tips_accumulate_into_barber_stats(db, admin, barber, haircut, client, auth):
    auth["user"] = admin
    open_cashier(client, 0)
    for tip in (5, 10):
        order = client.post(
            "/orders", json={"barberId": barber.id, "services": [{"itemId": haircut.id}]}
        ).json()
        client.put(f"/orders/{order['id']}/close", json={"paymentMethod": "PIX", "tipAmount": tip})

    session = CashierService(db).get_status()
    stat = session.barber_stats[0]
    assert stat.daily_revenue == 100
    assert stat.daily_tips == 15
    assert stat.service_count == 2
    assert session.summary_pix == 115
    assert session.transactions[1].description.endswith("+ Gorjeta - Cliente")


def test_summary_bucket_routing():
    assert summary_bucket("CASH") == "summary_cash"
    assert summary_bucket("card") == "summary_card"
    assert summary_bucket("PIX") == "summary_pix"
    assert summary_bucket("OUTRO") == "summary_other"
    assert summary_bucket(None) == "summary_other"


def test_require_open_session_raises_conflict(db):
    with pytest.raises(ConflictError) as exc_info:
        CashierService(db).require_open_session()
    assert exc_info.value.code == "no_open_session"
