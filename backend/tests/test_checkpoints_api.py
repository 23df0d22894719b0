"""Checkpoint endpoints: snapshot, list, rename, delete, restore and diff."""

from fastapi.testclient import TestClient
from sqlmodel import Session

from ringside.models.checkpoint import Checkpoint
from ringside.models.tournament_state import TournamentState

POOL_1 = "Beginner - Mixed 8-10 Pool 1"


def _state_json(make_competitor, make_category, sparring_rank=1):
    state = TournamentState(
        competitors=[
            make_competitor("1", forms=("cat-1", "P1"), forms_rank=1),
            make_competitor("2", sparring=("cat-1", "P1"), sparring_rank=sparring_rank, sub_group="a"),
        ],
        categories=[make_category()],
    )
    return state.model_dump(mode="json")


def _create(client: TestClient, state, name=None):
    body = {"state": state}
    if name is not None:
        body["name"] = name
    response = client.post("/api/checkpoints", json=body)
    assert response.status_code == 201
    return response.json()


class TestCheckpointLifecycle:
    def test_create_and_list(self, client: TestClient, make_competitor, make_category):
        state = _state_json(make_competitor, make_category)

        created = _create(client, state, name="Before lunch")

        assert created["name"] == "Before lunch"
        assert created["competitor_count"] == 2
        assert created["schema_version"] == 2

        listed = client.get("/api/checkpoints").json()
        assert [c["id"] for c in listed] == [created["id"]]

    def test_default_name(self, client: TestClient, make_competitor, make_category):
        created = _create(client, _state_json(make_competitor, make_category))
        assert created["name"].startswith("Checkpoint ")

    def test_get_returns_state(self, client: TestClient, make_competitor, make_category):
        state = _state_json(make_competitor, make_category)
        created = _create(client, state)

        response = client.get(f"/api/checkpoints/{created['id']}")

        assert response.status_code == 200
        restored = response.json()["state"]
        assert restored["competitors"] == state["competitors"]
        assert restored["categories"] == state["categories"]

    def test_rename(self, client: TestClient, make_competitor, make_category):
        created = _create(client, _state_json(make_competitor, make_category))

        response = client.patch(f"/api/checkpoints/{created['id']}", json={"name": "  Final check  "})

        assert response.status_code == 200
        assert response.json()["name"] == "Final check"

    def test_rename_blank_rejected(self, client: TestClient, make_competitor, make_category):
        created = _create(client, _state_json(make_competitor, make_category))
        response = client.patch(f"/api/checkpoints/{created['id']}", json={"name": "   "})
        assert response.status_code == 422

    def test_delete(self, client: TestClient, make_competitor, make_category):
        created = _create(client, _state_json(make_competitor, make_category))

        response = client.delete(f"/api/checkpoints/{created['id']}")

        assert response.status_code == 204
        assert client.get(f"/api/checkpoints/{created['id']}").status_code == 404
        assert client.get("/api/checkpoints").json() == []

    def test_missing_checkpoint_404(self, client: TestClient, make_competitor, make_category):
        state = _state_json(make_competitor, make_category)
        assert client.get("/api/checkpoints/999").status_code == 404
        assert client.patch("/api/checkpoints/999", json={"name": "x"}).status_code == 404
        assert client.delete("/api/checkpoints/999").status_code == 404
        assert client.post("/api/checkpoints/999/diff", json=state).status_code == 404

    def test_unreadable_snapshot_422(self, client: TestClient, session: Session, make_competitor, make_category):
        checkpoint = Checkpoint(name="bad", schema_version=99, competitor_count=0, state_json={"schema_version": 99})
        session.add(checkpoint)
        session.commit()
        session.refresh(checkpoint)

        state = _state_json(make_competitor, make_category)
        assert client.get(f"/api/checkpoints/{checkpoint.id}").status_code == 422
        assert client.post(f"/api/checkpoints/{checkpoint.id}/diff", json=state).status_code == 422


class TestCheckpointDiffEndpoint:
    def test_unchanged_state(self, client: TestClient, make_competitor, make_category):
        state = _state_json(make_competitor, make_category)
        created = _create(client, state)

        response = client.post(f"/api/checkpoints/{created['id']}/diff", json=state)

        assert response.status_code == 200
        data = response.json()
        assert data["added"] == []
        assert data["removed"] == []
        assert data["modified"] == []
        assert data["affected_group_ids"] == []

    def test_rank_change_in_sub_group(self, client: TestClient, make_competitor, make_category):
        created = _create(client, _state_json(make_competitor, make_category, sparring_rank=1))
        current = _state_json(make_competitor, make_category, sparring_rank=2)

        data = client.post(f"/api/checkpoints/{created['id']}/diff", json=current).json()

        assert data["affected_group_ids"] == [f"{POOL_1}_sparring_a"]
        assert data["modified"] == [
            {
                "competitor_id": "2",
                "competitor_name": "Kid2 Tester",
                "field": "sparring.rank",
                "old_value": 1,
                "new_value": 2,
            }
        ]

    def test_withdrawn_entry_with_stale_assignment_unchanged(
        self, client: TestClient, make_competitor, make_category
    ):
        withdrawn = make_competitor("3", forms=("cat-1", "P1"), forms_rank=2)
        withdrawn.forms.competing = False
        state = TournamentState(
            competitors=[make_competitor("1", forms=("cat-1", "P1"), forms_rank=1), withdrawn],
            categories=[make_category()],
        ).model_dump(mode="json")
        created = _create(client, state)

        data = client.post(f"/api/checkpoints/{created['id']}/diff", json=state).json()

        assert data["modified"] == []
        assert data["affected_group_ids"] == []

        stored = client.get(f"/api/checkpoints/{created['id']}").json()["state"]["competitors"][1]["forms"]
        assert stored["category_id"] is None
        assert stored["last_category_id"] == "cat-1"
