import unittest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from todo_backend.app import create_app
from todo_backend.auth import StaticIdentityVerifier
from todo_backend.db import SqlTaskRepository, UserRow
from todo_backend.dependencies import get_identity_verifier, get_repository
from todo_backend.errors import StorageError

U1 = {"Authorization": "Bearer token-u1"}
U2 = {"Authorization": "Bearer token-u2"}


class TaskApiTests(unittest.TestCase):
    def setUp(self):
        self.repo = SqlTaskRepository("sqlite+pysqlite:///:memory:")
        self.verifier = StaticIdentityVerifier.from_mapping(
            {"token-u1": "u1:u1@example.com", "token-u2": "u2"}
        )
        self.app = create_app()
        self.app.dependency_overrides[get_repository] = lambda: self.repo
        self.app.dependency_overrides[get_identity_verifier] = lambda: self.verifier
        self.client = TestClient(self.app)

    def tearDown(self):
        self.repo.dispose()

    def _create(self, headers=U1, **body):
        body.setdefault("title", "Buy milk")
        response = self.client.post("/api/tasks", json=body, headers=headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_defaults(self):
        task = self._create(userId="someone-else")
        self.assertEqual(task["title"], "Buy milk")
        self.assertEqual(task["status"], "created")
        self.assertEqual(task["userId"], "u1")
        self.assertIsNone(task["description"])
        self.assertIsNone(task["address"])
        self.assertIsNone(task["dueDate"])
        self.assertIn("createdAt", task)
        self.assertIn("updatedAt", task)

    def test_create_with_status(self):
        task = self._create(status="completed", address="Main St")
        self.assertEqual(task["status"], "completed")
        self.assertEqual(task["address"], "Main St")

    def test_create_without_title(self):
        response = self.client.post(
            "/api/tasks", json={"description": "no title"}, headers=U1
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Title is required"})
        self.assertEqual(self.repo.list_all(), [])
        with self.repo.Session() as session:
            self.assertIsNone(session.get(UserRow, "u1"))

    def test_create_rejects_non_string_text_fields(self):
        for field in ("description", "address"):
            response = self.client.post(
                "/api/tasks", json={"title": "x", field: 123}, headers=U1
            )
            self.assertEqual(response.status_code, 400, field)
            self.assertEqual(response.json(), {"error": f"{field} must be a string"})
        self.assertEqual(self.repo.list_all(), [])

    def test_update_rejects_non_string_text_fields(self):
        task = self._create(address="Main St")
        for field in ("description", "address"):
            response = self.client.put(
                f"/api/tasks/{task['id']}", json={field: {"street": 5}}, headers=U1
            )
            self.assertEqual(response.status_code, 400, field)
        self.assertEqual(self.repo.get(task["id"]).address, "Main St")

    def test_requires_token(self):
        response = self.client.get("/api/tasks")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "No token provided"})

    def test_rejects_invalid_token(self):
        response = self.client.get(
            "/api/tasks", headers={"Authorization": "Bearer forged"}
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Invalid token"})

    def test_get_and_list(self):
        first = self._create(title="first")
        second = self._create(title="second", headers=U2)

        response = self.client.get(f"/api/tasks/{first['id']}", headers=U1)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), first)

        all_tasks = self.client.get("/api/tasks", headers=U1).json()
        self.assertEqual([t["id"] for t in all_tasks], [second["id"], first["id"]])

        mine = self.client.get("/api/tasks/user/u2", headers=U1).json()
        self.assertEqual([t["id"] for t in mine], [second["id"]])

    def test_get_unknown_task(self):
        response = self.client.get("/api/tasks/does-not-exist", headers=U1)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Task not found"})

    def test_update_status_only(self):
        task = self._create(description="2 litres", address="Main St")
        response = self.client.put(
            f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=U1
        )
        self.assertEqual(response.status_code, 200)
        updated = response.json()
        changed = {k for k in task if task[k] != updated[k]}
        self.assertTrue(changed <= {"status", "updatedAt"}, changed)
        self.assertEqual(updated["status"], "completed")

    def test_update_invalid_due_date_becomes_null(self):
        task = self._create(dueDate="2026-11-01T09:00:00Z")
        self.assertTrue(task["dueDate"].startswith("2026-11-01T09:00:00"))
        response = self.client.put(
            f"/api/tasks/{task['id']}", json={"dueDate": "not-a-date"}, headers=U1
        )
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["dueDate"])

    def test_update_null_clears_field(self):
        task = self._create(description="2 litres")
        response = self.client.put(
            f"/api/tasks/{task['id']}", json={"description": None}, headers=U1
        )
        self.assertIsNone(response.json()["description"])
        self.assertEqual(response.json()["title"], "Buy milk")

    def test_update_without_fields(self):
        task = self._create()
        response = self.client.put(f"/api/tasks/{task['id']}", json={}, headers=U1)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No fields to update"})

    def test_update_invalid_status(self):
        task = self._create()
        response = self.client.put(
            f"/api/tasks/{task['id']}", json={"status": "archived"}, headers=U1
        )
        self.assertEqual(response.status_code, 400)

    def test_update_requires_json_object(self):
        task = self._create()
        response = self.client.put(
            f"/api/tasks/{task['id']}", json=["status"], headers=U1
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_update_unknown_task(self):
        response = self.client.put(
            "/api/tasks/missing", json={"title": "x"}, headers=U1
        )
        self.assertEqual(response.status_code, 404)

    def test_delete(self):
        task = self._create()
        response = self.client.delete(f"/api/tasks/{task['id']}", headers=U1)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(response.content, b"")
        self.assertEqual(
            self.client.get(f"/api/tasks/{task['id']}", headers=U1).status_code, 404
        )
        self.assertEqual(
            self.client.delete(f"/api/tasks/{task['id']}", headers=U1).status_code,
            404,
        )

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["status"], "healthy")
        self.assertEqual(payload["database"], "connected")
        self.assertIn("timestamp", payload)

    def test_unknown_route(self):
        response = self.client.get("/api/nothing-here")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Route not found"})


class StorageFailureTests(unittest.TestCase):
    def setUp(self):
        self.repo = MagicMock()
        self.app = create_app()
        self.app.dependency_overrides[get_repository] = lambda: self.repo
        self.app.dependency_overrides[get_identity_verifier] = (
            lambda: StaticIdentityVerifier.from_mapping({"token-u1": "u1"})
        )
        self.client = TestClient(self.app, raise_server_exceptions=False)

    def test_list_failure_is_500(self):
        self.repo.list_all.side_effect = StorageError("Failed to list tasks")
        response = self.client.get("/api/tasks", headers=U1)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to fetch tasks"})

    def test_create_failure_is_500(self):
        self.repo.create.side_effect = StorageError("Failed to create task")
        response = self.client.post("/api/tasks", json={"title": "x"}, headers=U1)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to create task"})

    def test_unexpected_error_is_generic_500(self):
        self.repo.get.side_effect = RuntimeError("boom")
        response = self.client.get("/api/tasks/abc", headers=U1)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error"})

    def test_unexpected_error_is_still_logged(self):
        self.repo.get.side_effect = RuntimeError("boom")
        with self.assertLogs("todo_backend.app", level="INFO") as logs:
            self.client.get("/api/tasks/abc", headers=U1)
        self.assertTrue(
            any("GET /api/tasks/abc 500" in line for line in logs.output), logs.output
        )

    def test_health_reports_unreachable_database(self):
        self.repo.ping.side_effect = StorageError("Database unreachable")
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 503)
        payload = response.json()
        self.assertEqual(payload["status"], "unhealthy")
        self.assertEqual(payload["database"], "disconnected")
        self.assertEqual(payload["error"], "Database unreachable")


if __name__ == "__main__":
    unittest.main()
