"""
Tests for the REST routers and their socket side effects.
"""

from shared.security.auth import issue_employee_token


def _employee(client, owner_headers, email="ana@example.com", name="Ana"):
    response = client.post(
        "/api/employees",
        json={"name": name, "email": email, "department": "Front"},
        headers=owner_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    def test_detailed_health(self, client):
        data = client.get("/ws/health/detailed").json()

        assert data["connections"]["online_users"] == 0
        assert "events_routed" in data["routing"]


class TestAuthRequired:
    def test_missing_header(self, client):
        assert client.get("/api/messages/owner-1").status_code == 401

    def test_employee_cannot_manage_employees(self, client, employee_headers):
        response = client.post(
            "/api/employees",
            json={"name": "X", "email": "x@example.com"},
            headers=employee_headers,
        )
        assert response.status_code == 403


class TestMessages:
    def test_create_pushes_to_online_recipient(self, client, owner_token, employee_headers):
        with client.websocket_connect(f"/ws?token={owner_token}") as owner_ws:
            owner_ws.send_text("ping")
            owner_ws.receive_json()

            response = client.post(
                "/api/messages",
                json={"to": "owner-1", "message": "Sent from the web form"},
                headers=employee_headers,
            )

            assert response.status_code == 201
            frame = owner_ws.receive_json()
            assert frame["event"] == "new-message"
            assert frame["data"]["id"] == response.json()["id"]

    def test_unknown_recipient(self, client, employee_headers):
        response = client.post(
            "/api/messages",
            json={"to": "ghost", "message": "hello?"},
            headers=employee_headers,
        )
        assert response.status_code == 404

    def test_blank_message(self, client, employee_headers, seed_owner):
        response = client.post(
            "/api/messages",
            json={"to": "owner-1", "message": "   "},
            headers=employee_headers,
        )
        assert response.status_code == 400

    def test_inactive_employee_recipient(self, client, owner_headers, seed_employee):
        client.delete(f"/api/employees/{seed_employee['id']}", headers=owner_headers)

        response = client.post(
            "/api/messages",
            json={"to": seed_employee["id"], "message": "still there?"},
            headers=owner_headers,
        )
        assert response.status_code == 400

    def test_history_limit_bounds(self, client, owner_headers):
        assert client.get("/api/messages/employee-1?limit=0", headers=owner_headers).status_code == 422
        assert client.get("/api/messages/employee-1?limit=201", headers=owner_headers).status_code == 422

    def test_only_sender_may_delete(self, client, owner_headers, employee_headers):
        created = client.post(
            "/api/messages",
            json={"to": "owner-1", "message": "delete me"},
            headers=employee_headers,
        ).json()

        assert client.delete(f"/api/messages/{created['id']}", headers=owner_headers).status_code == 403
        assert client.delete(f"/api/messages/{created['id']}", headers=employee_headers).status_code == 200
        assert client.delete(f"/api/messages/{created['id']}", headers=employee_headers).status_code == 404

    def test_conversation_list(self, client, owner_headers, employee_headers):
        other = _employee(client, owner_headers)
        client.post("/api/messages", json={"to": "employee-1", "message": "Morning"}, headers=owner_headers)
        client.post("/api/messages", json={"to": other["id"], "message": "Welcome Ana"}, headers=owner_headers)
        client.post("/api/messages", json={"to": "owner-1", "message": "On my way"}, headers=employee_headers)

        conversations = client.get("/api/messages/conversations/list", headers=owner_headers).json()

        assert [c["userId"] for c in conversations] == ["employee-1", other["id"]]
        assert conversations[0]["user"]["role"] == "employee"
        assert conversations[0]["lastMessage"]["message"] == "On my way"

        from_employee = client.get("/api/messages/conversations/list", headers=employee_headers).json()
        assert [c["user"]["role"] for c in from_employee] == ["owner"]

    def test_search(self, client, owner_headers, employee_headers):
        client.post("/api/messages", json={"to": "owner-1", "message": "Aisle 4 is clean"}, headers=employee_headers)
        client.post("/api/messages", json={"to": "owner-1", "message": "Lunch break"}, headers=employee_headers)

        response = client.get("/api/messages/search", params={"q": "AISLE"}, headers=owner_headers)

        assert response.status_code == 200
        assert [m["message"] for m in response.json()] == ["Aisle 4 is clean"]

        narrowed = client.get(
            "/api/messages/search",
            params={"q": "aisle", "userId": "someone-else"},
            headers=owner_headers,
        )
        assert narrowed.json() == []

    def test_search_query_too_short(self, client, employee_headers):
        response = client.get("/api/messages/search", params={"q": "a"}, headers=employee_headers)

        assert response.status_code == 400


class TestTasks:
    def _create(self, client, owner_headers, **fields):
        body = {"title": "Restock aisle 4", "assignedTo": "employee-1", **fields}
        response = client.post("/api/tasks", json=body, headers=owner_headers)
        assert response.status_code == 201
        return response.json()

    def test_create_notifies_assignee(self, client, owner_headers, employee_token):
        with client.websocket_connect(f"/ws?token={employee_token}") as ws:
            ws.send_text("ping")
            ws.receive_json()

            task = self._create(client, owner_headers)

            frame = ws.receive_json()
            assert frame["event"] == "new-task-assigned"
            assert frame["data"]["task"]["id"] == task["id"]
            assert frame["data"]["assignedTo"] == "employee-1"

    def test_assignee_must_be_active(self, client, owner_headers):
        response = client.post(
            "/api/tasks",
            json={"title": "Nope", "assignedTo": "ghost"},
            headers=owner_headers,
        )
        assert response.status_code == 400

    def test_employee_can_only_change_status(self, client, owner_headers, employee_headers):
        task = self._create(client, owner_headers)

        denied = client.put(f"/api/tasks/{task['id']}", json={"title": "Mine now"}, headers=employee_headers)
        assert denied.status_code == 403

        allowed = client.put(f"/api/tasks/{task['id']}", json={"status": "in-progress"}, headers=employee_headers)
        assert allowed.status_code == 200
        assert allowed.json()["status"] == "in-progress"

    def test_employee_cannot_touch_others_tasks(self, client, owner_headers, seed_employee):
        other = _employee(client, owner_headers)
        task = self._create(client, owner_headers)
        headers = {"Authorization": f"Bearer {issue_employee_token(other['id'])}"}

        response = client.put(f"/api/employee/tasks/{task['id']}/status", json={"status": "completed"}, headers=headers)

        assert response.status_code == 403

    def test_status_update_notifies_owner(self, client, owner_headers, owner_token, employee_headers):
        task = self._create(client, owner_headers)

        with client.websocket_connect(f"/ws?token={owner_token}") as owner_ws:
            owner_ws.send_text("ping")
            owner_ws.receive_json()

            response = client.put(
                f"/api/employee/tasks/{task['id']}/status",
                json={"status": "completed"},
                headers=employee_headers,
            )
            assert response.status_code == 200

            frame = owner_ws.receive_json()
            assert frame["event"] == "task-status-updated"
            assert frame["data"]["updatedBy"] == "employee-1"
            assert frame["data"]["task"]["status"] == "completed"

    def test_invalid_status(self, client, owner_headers, employee_headers):
        task = self._create(client, owner_headers)

        response = client.put(
            f"/api/employee/tasks/{task['id']}/status",
            json={"status": "done-ish"},
            headers=employee_headers,
        )

        assert response.status_code == 400

    def test_owner_update_and_delete(self, client, owner_headers, employee_headers):
        task = self._create(client, owner_headers)

        updated = client.put(
            f"/api/tasks/{task['id']}",
            json={"priority": "high", "description": "Before noon"},
            headers=owner_headers,
        )
        assert updated.json()["priority"] == "high"

        assert client.delete(f"/api/tasks/{task['id']}", headers=employee_headers).status_code == 403
        assert client.delete(f"/api/tasks/{task['id']}", headers=owner_headers).status_code == 200
        assert client.delete(f"/api/tasks/{task['id']}", headers=owner_headers).status_code == 404

    def test_explicit_null_leaves_field_unchanged(self, client, owner_headers, employee_headers):
        task = self._create(client, owner_headers)

        by_owner = client.put(
            f"/api/tasks/{task['id']}",
            json={"title": None, "assignedTo": None, "priority": None},
            headers=owner_headers,
        )
        assert by_owner.status_code == 200
        assert by_owner.json()["title"] == "Restock aisle 4"
        assert by_owner.json()["assignedTo"] == "employee-1"

        by_employee = client.put(f"/api/tasks/{task['id']}", json={"status": None}, headers=employee_headers)
        assert by_employee.status_code == 200
        assert by_employee.json()["status"] == "pending"

    def test_list_tasks_by_role(self, client, owner_headers, employee_headers):
        mine = self._create(client, owner_headers)
        other = _employee(client, owner_headers)
        theirs = self._create(client, owner_headers, assignedTo=other["id"])

        everything = client.get("/api/tasks", headers=owner_headers).json()
        assert [t["id"] for t in everything] == [mine["id"], theirs["id"]]
        assert everything[1]["assignedEmployee"]["name"] == "Ana"

        visible = client.get("/api/tasks", headers=employee_headers).json()
        assert [t["id"] for t in visible] == [mine["id"]]

    def test_get_task(self, client, owner_headers, employee_headers):
        other = _employee(client, owner_headers)
        mine = self._create(client, owner_headers)
        theirs = self._create(client, owner_headers, assignedTo=other["id"])

        found = client.get(f"/api/tasks/{mine['id']}", headers=employee_headers)
        assert found.status_code == 200
        assert found.json()["assignedEmployee"]["email"] == "eli@example.com"

        assert client.get(f"/api/tasks/{theirs['id']}", headers=employee_headers).status_code == 403
        assert client.get(f"/api/tasks/{theirs['id']}", headers=owner_headers).status_code == 200
        assert client.get("/api/tasks/missing", headers=owner_headers).status_code == 404

    def test_my_tasks(self, client, owner_headers, employee_headers):
        task = self._create(client, owner_headers)

        response = client.get("/api/employee/tasks", headers=employee_headers)

        assert [t["id"] for t in response.json()] == [task["id"]]


class TestEmployees:
    def test_duplicate_email_conflict(self, client, owner_headers, seed_employee):
        response = client.post(
            "/api/employees",
            json={"name": "Twin", "email": "ELI@example.com"},
            headers=owner_headers,
        )
        assert response.status_code == 409

    def test_changes_reach_owners_only(self, client, owner_headers, owner_token, employee_token):
        with client.websocket_connect(f"/ws?token={owner_token}") as owner_ws, \
                client.websocket_connect(f"/ws?token={employee_token}") as employee_ws:
            for ws in (owner_ws, employee_ws):
                ws.send_text("ping")
                ws.receive_json()

            created = _employee(client, owner_headers)
            assert owner_ws.receive_json()["event"] == "employee-added"

            client.put(f"/api/employees/{created['id']}", json={"department": "Back"}, headers=owner_headers)
            frame = owner_ws.receive_json()
            assert frame["event"] == "employee-updated"
            assert frame["data"]["employee"]["department"] == "Back"

            client.delete(f"/api/employees/{created['id']}", headers=owner_headers)
            assert owner_ws.receive_json() == {
                "event": "employee-deleted",
                "data": {"employeeId": created["id"]},
            }

            # The employee socket saw none of it
            employee_ws.send_text("ping")
            assert employee_ws.receive_json() == {"type": "pong"}

    def test_list_active(self, client, owner_headers, seed_employee):
        created = _employee(client, owner_headers)
        client.delete(f"/api/employees/{created['id']}", headers=owner_headers)

        names = [e["name"] for e in client.get("/api/employees", headers=owner_headers).json()]

        assert names == ["Eli Employee"]

    def test_update_missing(self, client, owner_headers):
        response = client.put("/api/employees/ghost", json={"name": "X"}, headers=owner_headers)
        assert response.status_code == 404

    def test_get_employee(self, client, owner_headers, employee_headers, seed_employee):
        found = client.get(f"/api/employees/{seed_employee['id']}", headers=owner_headers)
        assert found.json()["email"] == "eli@example.com"

        client.delete(f"/api/employees/{seed_employee['id']}", headers=owner_headers)
        assert client.get(f"/api/employees/{seed_employee['id']}", headers=owner_headers).json()["isActive"] is False

        assert client.get("/api/employees/ghost", headers=owner_headers).status_code == 404
        assert client.get(f"/api/employees/{seed_employee['id']}", headers=employee_headers).status_code == 403

    def test_explicit_null_name_ignored(self, client, owner_headers, seed_employee):
        response = client.put(
            f"/api/employees/{seed_employee['id']}",
            json={"name": None, "department": None},
            headers=owner_headers,
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Eli Employee"
        assert response.json()["department"] is None
