from datetime import datetime

from barbershop.domain.stats.service import month_bounds


def test_month_bounds_roll_over_december():
    start, end = month_bounds(datetime(2030, 12, 15, 10, 0))
    assert start == datetime(2030, 12, 1)
    assert end == datetime(2031, 1, 1)


def test_dashboard_figures(client, auth, admin, barber, customer, haircut, make_product):
    pomada = make_product(price=30, stock=5, category="Finalizadores")
    auth["user"] = customer
    client.post(
        "/appointments",
        json={"barberId": barber.id, "serviceId": haircut.id, "date": "2030-01-08T10:00:00"},
    )

    auth["user"] = admin
    client.post("/cashier/open", json={"initialValue": 0})
    for products in ([], [{"itemId": pomada.id, "quantity": 2}]):
        order = client.post(
            "/orders",
            json={"barberId": barber.id, "services": [{"itemId": haircut.id}], "products": products},
        ).json()
        client.put(f"/orders/{order['id']}/close", json={"paymentMethod": "CASH"})

    body = client.get("/stats").json()

    assert body["kpis"]["revenueToday"] == 160
    assert body["kpis"]["revenueMonth"] == 160
    assert body["kpis"]["ticketMedio"] == 80
    assert body["kpis"]["todayAppointments"] == 1
    assert body["kpis"]["totalClients"] == 1
    assert [a["client_id"] for a in body["pendingAppointments"]] == [customer.id]
    assert body["barberPerformance"] == [
        {"barberId": barber.id, "name": "John", "revenue": 160, "count": 2}
    ]
    assert body["breakdown"] == [{"category": "Finalizadores", "revenue": 60}]


def test_stats_are_admin_only(client, auth, barber):
    auth["user"] = barber
    assert client.get("/stats").status_code == 403
