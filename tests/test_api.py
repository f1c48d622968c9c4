from dayfit.models.catalog import Exercise, Product
from dayfit.models.routine import Routine

SLEEP = {
    "sleep_date": "2024-03-15",
    "bedtime": "2024-03-14T23:00:00",
    "wake_time": "2024-03-15T07:00:00",
    "total_sleep_hours": 8.0,
    "sleep_phases": [
        {
            "phase": "deep",
            "start_time": "2024-03-14T23:30:00",
            "end_time": "2024-03-15T01:00:00",
            "duration_minutes": 90,
        }
    ],
}


def test_health(client):
    resp = client.get("/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_user_profile(client):
    body = client.get("/v1/user").json()
    assert body["id"] == "user-1"
    assert body["role"] == "User"


# ---------- sleep ----------

def test_sleep_crud_and_duplicate_date(client):
    resp = client.post("/v1/sleep", json=SLEEP)
    assert resp.status_code == 201
    record = resp.json()
    assert record["sleep_phases"][0]["phase"] == "deep"

    dup = client.post("/v1/sleep", json=SLEEP)
    assert dup.status_code == 409

    resp = client.put(f"/v1/sleep/{record['id']}", json={"notes": "woke up once"})
    assert resp.status_code == 200
    assert resp.json()["notes"] == "woke up once"
    assert resp.json()["total_sleep_hours"] == 8.0

    listed = client.get("/v1/sleep", params={"start_date": "2024-03-01", "end_date": "2024-03-31"}).json()
    assert [r["id"] for r in listed] == [record["id"]]

    assert client.delete(f"/v1/sleep/{record['id']}").status_code == 200
    assert client.get(f"/v1/sleep/{record['id']}").status_code == 404


def test_sleep_rejects_wake_before_bedtime(client):
    bad = dict(SLEEP, wake_time="2024-03-14T22:00:00")
    assert client.post("/v1/sleep", json=bad).status_code == 422


# ---------- meals ----------

def test_meal_slots_accept_text_and_derive_macros(client, db):
    rice = Product(name="Rice", calories_per_100g=130, protein_per_100g=2.5, carbs_per_100g=28, fat_per_100g=0.3, is_default=True)
    db.add(rice)
    db.commit()

    resp = client.post(
        "/v1/meals",
        json={
            "meal_date": "2024-03-15",
            "breakfast": "Coffee and toast",
            "lunch": {"products": [{"product_id": rice.id, "product_name": "Rice", "quantity": 200}]},
        },
    )
    assert resp.status_code == 201
    meal = resp.json()
    assert meal["breakfast"]["description"] == "Coffee and toast"
    assert meal["lunch"]["totals"]["calories"] == 260
    assert meal["dinner"] is None

    assert client.post("/v1/meals", json={"meal_date": "2024-03-15"}).status_code == 409

    resp = client.put(f"/v1/meals/{meal['id']}", json={"breakfast": None, "water_liters": 1.5})
    assert resp.json()["breakfast"] is None
    assert resp.json()["lunch"]["totals"]["calories"] == 260
    assert resp.json()["water_liters"] == 1.5


# ---------- routines ----------

def test_routine_requires_matching_payload(client):
    resp = client.post(
        "/v1/routines",
        json={"routine_date": "2024-03-15", "routine_type": "running", "gym_data": {"exercises": []}},
    )
    assert resp.status_code == 422


def test_routine_one_per_type_per_day(client):
    steps = {"routine_date": "2024-03-15", "routine_type": "steps", "steps_count": 10000}
    assert client.post("/v1/routines", json=steps).status_code == 201
    assert client.post("/v1/routines", json=steps).status_code == 409

    running = {
        "routine_date": "2024-03-15",
        "routine_type": "running",
        "running_data": {"distance_km": 5, "duration_minutes": 28, "pace_per_km": "5:36"},
    }
    assert client.post("/v1/routines", json=running).status_code == 201

    listed = client.get("/v1/routines", params={"routine_type": "running"}).json()
    assert len(listed) == 1


def test_routine_update_switching_type(client):
    created = client.post(
        "/v1/routines",
        json={"routine_date": "2024-03-15", "routine_type": "steps", "steps_count": 5000},
    ).json()

    resp = client.put(f"/v1/routines/{created['id']}", json={"routine_type": "running"})
    assert resp.status_code == 400

    resp = client.put(
        f"/v1/routines/{created['id']}",
        json={"routine_type": "football_match", "football_match_data": {"total_kms": 9, "calories": 700}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["routine_type"] == "football_match"
    assert body["steps_count"] is None
    assert body["football_match_data"]["total_kms"] == 9


# ---------- templates & assignment ----------

def test_templates_are_listed_favorites_first(client, gym_template_payload):
    client.post("/v1/routine-templates", json=gym_template_payload)
    client.post("/v1/routine-templates", json=dict(gym_template_payload, name="Legs", is_favorite=True))
    client.post("/v1/routine-templates", json=dict(gym_template_payload, name="Back"))

    names = [t["name"] for t in client.get("/v1/routine-templates").json()]
    assert names == ["Legs", "Back", "Upper body"]

    favorites = client.get("/v1/routine-templates", params={"favorites_only": True}).json()
    assert [t["name"] for t in favorites] == ["Legs"]


def test_recurring_assignment_then_conflicts(client, db, gym_template_payload):
    template = client.post("/v1/routine-templates", json=gym_template_payload).json()
    body = {"start_date": "2024-01-01", "end_date": "2024-01-31", "weekdays": [0]}

    first = client.post(f"/v1/routine-templates/{template['id']}/assign/recurring", json=body).json()
    assert first["planned"] == 5
    assert first["success_count"] == 5
    assert first["summary"] is None

    second = client.post(f"/v1/routine-templates/{template['id']}/assign/recurring", json=body).json()
    assert second["success_count"] == 0
    assert second["exists_count"] == 5
    assert second["summary"]

    rows = db.query(Routine).filter(Routine.user_id == "user-1").all()
    assert len(rows) == 5
    assert all(r.gym_data is not None and r.steps_count is None for r in rows)


def test_recurring_assignment_requires_weekdays(client, db, gym_template_payload):
    template = client.post("/v1/routine-templates", json=gym_template_payload).json()
    resp = client.post(
        f"/v1/routine-templates/{template['id']}/assign/recurring",
        json={"start_date": "2024-01-01", "end_date": "2024-01-31", "weekdays": []},
    )
    assert resp.status_code == 400
    assert db.query(Routine).count() == 0


def test_recurring_assignment_rejects_bad_weekday(client, gym_template_payload):
    template = client.post("/v1/routine-templates", json=gym_template_payload).json()
    resp = client.post(
        f"/v1/routine-templates/{template['id']}/assign/recurring",
        json={"start_date": "2024-01-01", "end_date": "2024-01-31", "weekdays": [7]},
    )
    assert resp.status_code == 422


def test_single_assignment_with_overwrite(client, db, gym_template_payload):
    template = client.post("/v1/routine-templates", json=gym_template_payload).json()
    url = f"/v1/routine-templates/{template['id']}/assign"

    assert client.post(url, json={"date": "2024-02-05"}).json()["success_count"] == 1
    assert client.post(url, json={"date": "2024-02-05"}).json()["exists_count"] == 1

    client.put(f"/v1/routine-templates/{template['id']}", json={"notes": "heavier"})
    resp = client.post(url, json={"date": "2024-02-05", "overwrite": True}).json()
    assert resp["success_count"] == 1
    assert db.query(Routine).one().notes == "heavier"


def test_assign_unknown_template(client):
    resp = client.post("/v1/routine-templates/999/assign", json={"date": "2024-02-05"})
    assert resp.status_code == 404


# ---------- catalogs ----------

def test_products_defaults_and_ownership(client, db):
    db.add_all(
        [
            Product(name="Oats", category="cereal", is_default=True),
            Product(name="Secret sauce", user_id="someone-else"),
        ]
    )
    db.commit()
    default_id = db.query(Product).filter(Product.name == "Oats").one().id
    foreign_id = db.query(Product).filter(Product.name == "Secret sauce").one().id

    mine = client.post("/v1/products", json={"name": "Oat milk", "calories_per_100g": 45}).json()

    names = [p["name"] for p in client.get("/v1/products", params={"search": "OAT"}).json()]
    assert names == ["Oats", "Oat milk"]

    assert client.delete(f"/v1/products/{default_id}").status_code == 403
    assert client.delete(f"/v1/products/{foreign_id}").status_code == 403
    assert client.get(f"/v1/products/{foreign_id}").status_code == 404
    assert client.delete(f"/v1/products/{mine['id']}").status_code == 200
    assert client.delete("/v1/products/999").status_code == 404


def test_exercises_defaults_plus_own(client, db):
    db.add(Exercise(name="Squat", muscle_group="legs", is_default=True))
    db.commit()
    client.post("/v1/exercises", json={"name": "Nordic curl", "muscle_group": "legs"})

    names = [e["name"] for e in client.get("/v1/exercises", params={"muscle_group": "legs"}).json()]
    assert names == ["Squat", "Nordic curl"]


# ---------- days ----------

def test_day_summary_and_export(client):
    client.post("/v1/sleep", json=SLEEP)
    client.post("/v1/routines", json={"routine_date": "2024-03-15", "routine_type": "steps", "steps_count": 12000})

    day = client.get("/v1/days/2024-03-15").json()
    assert day["sleep"]["total_sleep_hours"] == 8.0
    assert day["routines"] == [{"type": "steps", "notes": None, "data": {"steps_count": 12000}}]

    empty = client.get("/v1/days/2024-03-16").json()
    assert empty["sleep"] is None and empty["meals"] is None and empty["routines"] == []

    resp = client.get("/v1/days/2024-03-15/export")
    assert resp.status_code == 200
    assert 'filename="day-2024-03-15.json"' in resp.headers["content-disposition"]
    assert resp.json()["date"] == "2024-03-15"


def test_day_rejects_bad_date(client):
    assert client.get("/v1/days/15-03-2024").status_code == 400


def test_calendar_month(client):
    client.post("/v1/sleep", json=SLEEP)
    body = client.get("/v1/calendar/2024/3").json()
    assert len(body["days"]) % 7 == 0
    cell = next(c for c in body["days"] if c["date"] == "2024-03-15")
    assert cell["has_sleep"] and cell["sleep_quality"] == "good"

    assert client.get("/v1/calendar/2024/13").status_code == 400


def test_sleep_rejects_mixed_timezone_offsets(client):
    mixed = dict(SLEEP, bedtime="2024-03-14T23:00:00+01:00")
    resp = client.post("/v1/sleep", json=mixed)
    assert resp.status_code == 422


def test_sleep_accepts_offsets_on_both_times(client):
    aware = dict(SLEEP, bedtime="2024-03-14T23:00:00+01:00", wake_time="2024-03-15T07:00:00+01:00")
    assert client.post("/v1/sleep", json=aware).status_code == 201


def test_recurring_assignment_with_no_matching_day_in_range(client, db, gym_template_payload):
    template = client.post("/v1/routine-templates", json=gym_template_payload).json()
    resp = client.post(
        f"/v1/routine-templates/{template['id']}/assign/recurring",
        json={"start_date": "2024-01-01", "end_date": "2024-01-02", "weekdays": [6]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["planned"] == 0
    assert (body["success_count"], body["exists_count"], body["error_count"]) == (0, 0, 0)
    assert body["summary"] is None
    assert db.query(Routine).count() == 0


def test_template_update_rejects_routine_date(client, gym_template_payload):
    template = client.post("/v1/routine-templates", json=gym_template_payload).json()
    resp = client.put(f"/v1/routine-templates/{template['id']}", json={"routine_date": "2024-02-05"})
    assert resp.status_code == 422
