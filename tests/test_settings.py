from barbershop.domain.settings.service import SettingsService
from barbershop.models import ShopSettings


def test_settings_created_with_defaults_on_first_read(client):
    response = client.get("/settings")

    assert response.status_code == 200
    body = response.json()
    assert body["slot_duration"] == 30
    assert body["cancellation_window"] == 2
    assert body["closed_days"] == []
    assert [d["day"] for d in body["weekly_schedule"]] == list(range(7))
    assert body["weekly_schedule"][0]["active"] is False
    assert body["weekly_schedule"][1]["period1Start"] == "09:00"


def test_legacy_row_is_migrated_once_on_load(db):
    db.add(
        ShopSettings(
            business_hours={"period1Start": "10:00", "period1End": "19:00"},
            working_days=[2, 3, 4],
            slot_duration=60,
            cancellation_window=1,
        )
    )
    db.commit()

    settings = SettingsService(db).get_settings()

    assert settings.weekly_schedule[2]["active"] is True
    assert settings.weekly_schedule[2]["period1Start"] == "10:00"
    assert settings.weekly_schedule[1]["active"] is False
    db.expire_all()
    assert db.query(ShopSettings).one().weekly_schedule[3]["period1End"] == "19:00"


def test_admin_updates_schedule_and_holidays(client, auth, admin):
    auth["user"] = admin

    response = client.put(
        "/settings",
        json={
            "weeklySchedule": [
                {"day": 1, "active": True, "period1Start": "08:00", "period1End": "12:00"},
            ],
            "closedDays": ["2030-12-25", "2030-01-01", "2030-12-25"],
            "slotDuration": 20,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["slot_duration"] == 20
    assert body["closed_days"] == ["2030-01-01", "2030-12-25"]
    assert len(body["weekly_schedule"]) == 7
    assert body["weekly_schedule"][1]["period1End"] == "12:00"
    assert body["weekly_schedule"][2]["active"] is False


def test_settings_update_rejects_unpadded_times(client, auth, admin):
    auth["user"] = admin

    response = client.put(
        "/settings",
        json={"weeklySchedule": [{"day": 1, "active": True, "period1Start": "9:00", "period1End": "12:00"}]},
    )

    assert response.status_code == 422


def test_settings_update_rejects_zero_slot_duration(client, auth, admin):
    auth["user"] = admin
    assert client.put("/settings", json={"slotDuration": 0}).status_code == 422


def test_only_admin_updates_settings(client, auth, barber):
    auth["user"] = barber

    response = client.put("/settings", json={"slotDuration": 15})

    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"
