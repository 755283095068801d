from coworking_api.models_hr import Task


def create_task(client, **overrides):
    payload = {"title": "Nettoyer la machine à café", "priority": "high"}
    payload.update(overrides)
    return client.post("/tasks", json=payload)


class TestTasks:
    def test_admin_creates_task(self, admin_client):
        response = create_task(admin_client)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["priority"] == "high"

    def test_staff_cannot_create(self, staff_client):
        assert create_task(staff_client).status_code == 403

    def test_blank_title(self, admin_client):
        assert create_task(admin_client, title="   ").status_code == 400

    def test_title_too_long(self, admin_client):
        assert create_task(admin_client, title="x" * 101).status_code == 400

    def test_list_orders_pending_high_priority_first(self, staff_client, db):
        db.add_all(
            [
                Task(title="low", priority="low", status="pending"),
                Task(title="done", priority="high", status="completed"),
                Task(title="urgent", priority="high", status="pending"),
            ]
        )
        db.commit()
        titles = [t["title"] for t in staff_client.get("/tasks").json()]
        assert titles == ["urgent", "low", "done"]

    def test_filter_by_status(self, staff_client, db):
        db.add_all([Task(title="a", status="pending"), Task(title="b", status="completed")])
        db.commit()
        response = staff_client.get("/tasks", params={"status": "completed"})
        assert [t["title"] for t in response.json()] == ["b"]

    def test_anyone_toggles_status(self, admin_client, guest_client):
        task_id = create_task(admin_client).json()["id"]

        done = guest_client.patch(f"/tasks/{task_id}", json={"status": "completed"})
        assert done.status_code == 200
        assert done.json()["completedAt"] is not None
        assert done.json()["completedBy"] is None

        reopened = guest_client.patch(f"/tasks/{task_id}", json={"status": "pending"})
        assert reopened.json()["completedAt"] is None

    def test_staff_completion_is_attributed(self, admin_client, make_client, staff_user):
        task_id = create_task(admin_client).json()["id"]
        response = make_client(staff_user).patch(f"/tasks/{task_id}", json={"status": "completed"})
        assert response.json()["completedBy"] == staff_user.id

    def test_only_admin_edits_details(self, admin_client, staff_user, make_client):
        task_id = create_task(admin_client).json()["id"]
        staff = make_client(staff_user)
        assert staff.patch(f"/tasks/{task_id}", json={"title": "Renamed"}).status_code == 403

    def test_delete(self, admin_client):
        task_id = create_task(admin_client).json()["id"]
        assert admin_client.delete(f"/tasks/{task_id}").status_code == 200
        assert admin_client.patch(f"/tasks/{task_id}", json={"status": "completed"}).status_code == 404
