"""Bracket seeding endpoints."""

from fastapi.testclient import TestClient


def _dump(models):
    return [m.model_dump(mode="json") for m in models]


def test_seed_five(client: TestClient):
    response = client.post("/api/brackets/seed", json={"entrant_ids": ["c1", "c2", "c3", "c4", "c5"]})

    assert response.status_code == 200
    data = response.json()
    assert data["entrant_count"] == 5
    assert data["num_byes"] == 3
    assert data["bye_competitor_ids"] == ["c1", "c2", "c3"]
    assert len(data["matches"]) == 16
    final, third_place = data["matches"][-2], data["matches"][-1]
    assert final["number"] == 5
    assert third_place["number"] == 4
    assert third_place["is_third_place"] is True


def test_seed_empty(client: TestClient):
    data = client.post("/api/brackets/seed", json={"entrant_ids": []}).json()
    assert data["entrant_count"] == 0
    assert all(m["number"] is None for m in data["matches"])


def test_seed_too_many(client: TestClient):
    response = client.post("/api/brackets/seed", json={"entrant_ids": [f"c{i}" for i in range(17)]})

    assert response.status_code == 422
    assert "UNSUPPORTED_BRACKET_SIZE" in response.json()["detail"]


def test_group_brackets_split_by_sub_group(client: TestClient, make_competitor, make_category):
    competitors = [
        make_competitor(str(i), sparring=("cat-1", "P1"), sparring_rank=i + 1, sub_group="ab"[i % 2])
        for i in range(5)
    ]

    response = client.post(
        "/api/brackets/group",
        json={
            "competitors": _dump(competitors),
            "categories": _dump([make_category()]),
            "category_id": "cat-1",
            "pool": "P1",
        },
    )

    assert response.status_code == 200
    brackets = response.json()
    assert [b["label"] for b in brackets] == ["Alt Ring A", "Alt Ring B"]
    assert [b["group_id"] for b in brackets] == [
        "Beginner - Mixed 8-10 Pool 1_sparring_a",
        "Beginner - Mixed 8-10 Pool 1_sparring_b",
    ]
    assert [b["entrant_count"] for b in brackets] == [3, 2]


def test_group_brackets_single_bracket(client: TestClient, make_competitor, make_category):
    competitors = [make_competitor(str(i), sparring=("cat-1", "P1"), sparring_rank=i + 1) for i in range(4)]

    response = client.post(
        "/api/brackets/group",
        json={"competitors": _dump(competitors), "categories": _dump([make_category()]), "category_id": "cat-1"},
    )

    brackets = response.json()
    assert len(brackets) == 1
    assert brackets[0]["group_id"] == "Beginner - Mixed 8-10 Pool 1_sparring"
    assert brackets[0]["num_byes"] == 0


def test_group_brackets_missing_pool(client: TestClient, make_category):
    response = client.post(
        "/api/brackets/group",
        json={"competitors": [], "categories": _dump([make_category()]), "category_id": "cat-1"},
    )
    assert response.status_code == 404
