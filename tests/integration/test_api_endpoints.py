"""
Integration tests for the learning path API.
"""

from uuid import uuid4

from fastapi.testclient import TestClient

BASE = "/api/learning-path"


def create_path(client: TestClient, data: dict) -> dict:
    response = client.post(BASE, json=data)
    assert response.status_code == 201, response.text
    return response.json()


def assign(client: TestClient, skill_id: str, *titles: str) -> dict:
    response = client.post(
        f"{BASE}/skills/{skill_id}/projects",
        json={"projects": [{"title": t} for t in titles]},
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestLearningPathAPI:
    """Plan lifecycle endpoints."""

    def test_get_without_path(self, auth_client: TestClient):
        response = auth_client.get(BASE)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_create_and_get(self, auth_client: TestClient, sample_path_data, test_user_id):
        created = create_path(auth_client, sample_path_data)

        assert created["user_id"] == test_user_id
        assert created["is_active"] is True
        assert created["overall_progress"] == 0
        assert created["api_response"] == sample_path_data["apiResponse"]
        assert [s["skill_name"] for s in created["skills"]] == ["Docker", "Kubernetes"]
        assert created["skills"][0]["learning_topics"] == ["images", "compose"]

        response = auth_client.get(BASE)
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_create_validation_failure_keeps_active_path(
        self, auth_client: TestClient, sample_path_data
    ):
        created = create_path(auth_client, sample_path_data)

        response = auth_client.post(
            BASE, json={**sample_path_data, "experience": "expert"}
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_FAILED"
        errors = response.json()["error"]["details"]["errors"]
        assert errors[0]["loc"][-1] == "experience"

        active = auth_client.get(BASE).json()
        assert active["id"] == created["id"]
        assert active["is_active"] is True

    def test_second_create_supersedes_first(
        self, auth_client: TestClient, sample_path_data
    ):
        first = create_path(auth_client, sample_path_data)
        second = create_path(auth_client, {**sample_path_data, "jobTitle": "SRE"})

        assert auth_client.get(BASE).json()["id"] == second["id"]

        history = auth_client.get(f"{BASE}/history").json()["items"]
        assert [p["id"] for p in history] == [second["id"], first["id"]]
        assert [p["is_active"] for p in history] == [True, False]

    def test_delete_deactivates(self, auth_client: TestClient, sample_path_data):
        create_path(auth_client, sample_path_data)

        response = auth_client.delete(BASE)
        assert response.status_code == 200

        assert auth_client.get(BASE).status_code == 404
        assert auth_client.delete(BASE).status_code == 404
        assert len(auth_client.get(f"{BASE}/history").json()["items"]) == 1

    def test_other_user_cannot_see_path(
        self, auth_client: TestClient, sample_path_data, make_token
    ):
        create_path(auth_client, sample_path_data)

        other = {"Authorization": f"Bearer {make_token('someone-else')}"}
        assert auth_client.get(BASE, headers=other).status_code == 404


class TestProjectsAPI:
    """Skill and project endpoints."""

    def test_progress_flow(self, auth_client: TestClient, sample_path_data):
        path = create_path(auth_client, sample_path_data)
        docker_id = path["skills"][0]["id"]

        assigned = assign(auth_client, docker_id, "Image", "Compose")
        assert assigned["skill_progress"] == 0
        projects = assigned["skill"]["projects"]
        assert [p["status"] for p in projects] == ["Not Started", "Not Started"]
        assert all(p["estimated_hours"] == 10 for p in projects)

        response = auth_client.put(
            f"{BASE}/skills/{docker_id}/projects/{projects[0]['id']}",
            json={"status": "In Progress"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["project"]["started_at"] is not None
        assert body["skill_progress"] == 0

        response = auth_client.put(
            f"{BASE}/skills/{docker_id}/projects/{projects[0]['id']}",
            json={"status": "Done"},
        )
        body = response.json()
        assert body["project"]["completed_at"] is not None
        assert body["skill_progress"] == 50
        assert body["overall_progress"] == 25

        response = auth_client.post(
            f"{BASE}/skills/{docker_id}/projects/{projects[1]['id']}/complete"
        )
        body = response.json()
        assert body["applied"] is True
        assert body["skill_progress"] == 100
        assert body["overall_progress"] == 50

        skill = auth_client.get(f"{BASE}/skills/DOCKER").json()
        assert skill["status"] == "completed"
        assert skill["completed_at"] is not None

        stats = auth_client.get(f"{BASE}/stats").json()
        assert stats["completed_skills"] == 1
        assert stats["completed_projects"] == 2
        assert stats["total_projects"] == 2
        assert stats["overall_progress"] == 50

    def test_repeat_transitions_are_not_applied(
        self, auth_client: TestClient, sample_path_data
    ):
        path = create_path(auth_client, sample_path_data)
        skill_id = path["skills"][1]["id"]
        project_id = assign(auth_client, skill_id, "Deploy")["skill"]["projects"][0]["id"]
        url = f"{BASE}/skills/{skill_id}/projects/{project_id}"

        assert auth_client.post(f"{url}/start").json()["applied"] is True
        assert auth_client.post(f"{url}/start").json()["applied"] is False

        done = auth_client.post(f"{url}/complete").json()
        again = auth_client.post(f"{url}/complete").json()
        assert again["applied"] is False
        assert again["project"]["completed_at"] == done["project"]["completed_at"]
        assert again["skill_progress"] == 100

    def test_reassign_discards_progress(self, auth_client: TestClient, sample_path_data):
        path = create_path(auth_client, sample_path_data)
        skill_id = path["skills"][0]["id"]
        project_id = assign(auth_client, skill_id, "One")["skill"]["projects"][0]["id"]
        auth_client.post(f"{BASE}/skills/{skill_id}/projects/{project_id}/complete")

        reassigned = assign(auth_client, skill_id, "Two", "Three")

        assert reassigned["skill_progress"] == 0
        assert reassigned["overall_progress"] == 0
        assert [p["title"] for p in reassigned["skill"]["projects"]] == ["Two", "Three"]

    def test_invalid_status(self, auth_client: TestClient, sample_path_data):
        path = create_path(auth_client, sample_path_data)
        skill_id = path["skills"][0]["id"]
        project_id = assign(auth_client, skill_id, "One")["skill"]["projects"][0]["id"]

        response = auth_client.put(
            f"{BASE}/skills/{skill_id}/projects/{project_id}",
            json={"status": "Finished"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_FAILED"

    def test_invalid_project_payload(self, auth_client: TestClient, sample_path_data):
        path = create_path(auth_client, sample_path_data)
        skill_id = path["skills"][0]["id"]

        response = auth_client.post(
            f"{BASE}/skills/{skill_id}/projects",
            json={"projects": [{"title": "X", "estimatedHours": 500}]},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_FAILED"

    def test_unknown_ids(self, auth_client: TestClient, sample_path_data):
        path = create_path(auth_client, sample_path_data)
        skill_id = path["skills"][0]["id"]

        response = auth_client.post(
            f"{BASE}/skills/{uuid4()}/projects", json={"projects": [{"title": "X"}]}
        )
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Skill not found"

        response = auth_client.put(
            f"{BASE}/skills/{skill_id}/projects/{uuid4()}", json={"status": "Done"}
        )
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Project not found"

        assert auth_client.get(f"{BASE}/skills/Terraform").status_code == 404

    def test_stats_without_path(self, auth_client: TestClient):
        response = auth_client.get(f"{BASE}/stats")
        assert response.status_code == 200
        assert response.json()["total_skills"] == 0
        assert response.json()["overall_progress"] == 0

    def test_duplicate_skill_names_rejected(
        self, auth_client: TestClient, sample_path_data
    ):
        response = auth_client.post(
            BASE, json={**sample_path_data, "skills": ["Docker", "docker"]}
        )

        assert response.status_code == 400
        body = response.json()["error"]
        assert body["code"] == "VALIDATION_FAILED"
        assert body["message"] == "Validation failed"
        assert body["details"]["errors"]

    def test_skill_lookup_with_slash_in_name(
        self, auth_client: TestClient, sample_path_data
    ):
        create_path(auth_client, {**sample_path_data, "skills": ["CI/CD", "Docker"]})

        response = auth_client.get(f"{BASE}/skills/ci%2Fcd")
        assert response.status_code == 200, response.text
        assert response.json()["skill_name"] == "CI/CD"

        response = auth_client.get(f"{BASE}/skills/TCP%2FIP")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
