"""Group derivation and ordering endpoints, plus state migration and health."""

from fastapi.testclient import TestClient


def _dump(models):
    return [m.model_dump(mode="json") for m in models]


def test_derive_groups(client: TestClient, make_competitor, make_category):
    competitors = [make_competitor(str(i), forms=("cat-1", "P1")) for i in range(1, 6)]
    competitors.append(make_competitor("6", sparring=("cat-1", "P1"), sub_group="b"))

    response = client.post(
        "/api/groups/derive",
        json={
            "competitors": _dump(competitors),
            "categories": _dump([make_category()]),
            "category_pool_mappings": [
                {"division": "Beginner", "category_id": "cat-1", "pool": "P1", "physical_ring_id": "ring-2"}
            ],
        },
    )

    assert response.status_code == 200
    groups = response.json()
    assert [g["group_id"] for g in groups] == [
        "Beginner - Mixed 8-10 Pool 1_forms",
        "Beginner - Mixed 8-10 Pool 1_sparring",
    ]
    assert groups[0]["display_name"] == "Beginner - Mixed 8-10 Pool 1"
    assert groups[0]["member_ids"] == ["1", "2", "3", "4", "5"]
    assert groups[0]["physical_ring_id"] == "ring-2"
    assert groups[1]["type"] == "sparring"


def test_derive_groups_rejects_bad_payload(client: TestClient):
    response = client.post("/api/groups/derive", json={"competitors": [{"id": "1"}], "categories": []})
    assert response.status_code == 422


def test_order_sparring_group(client: TestClient, make_competitor):
    competitors = [
        make_competitor("tall", height=64, sparring=("cat-1", "P1")),
        make_competitor("short", height=50, sparring=("cat-1", "P1")),
        make_competitor("other", height=40, sparring=("cat-2", "P1")),
    ]

    response = client.post(
        "/api/groups/order",
        json={"competitors": _dump(competitors), "type": "sparring", "category_id": "cat-1", "pool": "P1"},
    )

    assert response.status_code == 200
    ranks = {c["id"]: c["sparring"]["rank"] for c in response.json()}
    assert ranks == {"tall": 2, "short": 1, "other": None}


def test_order_forms_group(client: TestClient, make_competitor):
    competitors = [make_competitor(str(i), school=f"S{i % 2}", forms=("cat-1", "P1")) for i in range(4)]

    response = client.post(
        "/api/groups/order",
        json={"competitors": _dump(competitors), "type": "forms", "category_id": "cat-1"},
    )

    assert response.status_code == 200
    assert sorted(c["forms"]["rank"] for c in response.json()) == [1, 2, 3, 4]


def test_migrate_state(client: TestClient):
    response = client.post(
        "/api/state/migrate",
        json={
            "participants": [
                {
                    "id": "p1",
                    "firstName": "Ann",
                    "lastName": "Lee",
                    "formsDivision": "Beginner",
                    "formsCategoryId": "c1",
                    "formsPool": "P1",
                }
            ],
            "categories": [{"id": "c1", "name": "Mixed 8-10", "division": "Beginner"}],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["schema_version"] == 2
    assert data["competitors"][0]["forms"]["category_id"] == "c1"
    assert data["competitors"][0]["forms"]["competing"] is True


def test_migrate_unknown_version(client: TestClient):
    response = client.post("/api/state/migrate", json={"schema_version": 42})
    assert response.status_code == 422


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "Ringside API"
