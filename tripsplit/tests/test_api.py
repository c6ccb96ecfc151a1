"""
API tests for the groups, expenses and settlements routers.
"""
import pytest


@pytest.fixture
def group_id(client):
    response = client.post("/groups", json={
        "name": "Iceland ring road",
        "members": [
            {"user_id": "ana@example.com", "is_owner": True},
            {"user_id": "ben@example.com"},
            {"user_id": "cy@example.com"},
        ]
    })
    assert response.status_code == 201
    return response.json()["id"]


def post_expense(client, group_id, payer, amount, participants, **extra):
    return client.post(f"/expenses/groups/{group_id}", json={
        "payer": payer, "amount": amount, "participants": participants, **extra
    })


class TestServiceEndpoints:

    def test_root_and_health(self, client):
        assert client.get("/").json()["version"] == "1.0.0"
        assert client.get("/health").json() == {"status": "healthy"}


class TestGroupEndpoints:

    def test_get_group(self, client, group_id):
        response = client.get(f"/groups/{group_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Iceland ring road"
        assert [m["user_id"] for m in body["members"]] == ["ana@example.com", "ben@example.com", "cy@example.com"]

    def test_list_groups(self, client, group_id):
        response = client.get("/groups")
        assert response.status_code == 200
        assert [g["id"] for g in response.json()] == [group_id]

    def test_unknown_group(self, client):
        assert client.get("/groups/nope").status_code == 404

    def test_add_member(self, client, group_id):
        response = client.post(f"/groups/{group_id}/members", json={"user_id": "dee@example.com"})
        assert response.status_code == 201
        assert len(response.json()["members"]) == 4

        again = client.post(f"/groups/{group_id}/members", json={"user_id": "dee@example.com"})
        assert again.status_code == 409

    def test_duplicate_members_rejected(self, client):
        response = client.post("/groups", json={
            "name": "Oops", "members": [{"user_id": "x"}, {"user_id": "x"}]
        })
        assert response.status_code == 422


class TestExpenseEndpoints:

    def test_create_and_list(self, client, group_id):
        response = post_expense(client, group_id, "ana@example.com", "90",
                                ["ana@example.com", "ben@example.com", "cy@example.com"],
                                description="Guesthouse", category="Accommodation")
        assert response.status_code == 201
        expense = response.json()
        assert expense["group_id"] == group_id
        assert expense["category"] == "Accommodation"

        listed = client.get(f"/expenses/groups/{group_id}").json()
        assert [e["id"] for e in listed] == [expense["id"]]
        assert client.get(f"/expenses/{expense['id']}").json()["description"] == "Guesthouse"

    @pytest.mark.parametrize("amount,participants", [
        ("0", ["ana@example.com"]),
        ("-3", ["ana@example.com"]),
        ("10", []),
    ])
    def test_malformed_expense_rejected(self, client, group_id, amount, participants):
        response = post_expense(client, group_id, "ana@example.com", amount, participants)
        assert response.status_code == 422

    @pytest.mark.parametrize("amount", ["1e27", "12.345"])
    def test_unrepresentable_amount_is_not_stored(self, client, group_id, amount):
        response = post_expense(client, group_id, "ana@example.com", amount, ["ben@example.com"])
        assert response.status_code == 422
        assert client.get(f"/expenses/groups/{group_id}").json() == []
        assert client.get(f"/settlements/groups/{group_id}").json() == []

    def test_patch_null_clears_activity(self, client, group_id):
        expense = post_expense(client, group_id, "ana@example.com", "30",
                               ["ana@example.com", "ben@example.com"], activity_id="hot-springs").json()
        assert expense["activity_id"] == "hot-springs"

        patched = client.patch(f"/expenses/{expense['id']}", json={"activity_id": None})
        assert patched.status_code == 200
        assert patched.json()["activity_id"] is None
        assert patched.json()["amount"] == expense["amount"]

    def test_non_member_rejected(self, client, group_id):
        response = post_expense(client, group_id, "ana@example.com", "10", ["zed@example.com"])
        assert response.status_code == 400

    def test_edit_and_delete_trigger_resettlement(self, client, group_id):
        expense = post_expense(client, group_id, "ana@example.com", "90",
                               ["ana@example.com", "ben@example.com", "cy@example.com"]).json()

        patched = client.patch(f"/expenses/{expense['id']}", json={"amount": "60"})
        assert patched.status_code == 200
        settlements = client.get(f"/settlements/groups/{group_id}").json()
        assert [(s["from"], s["to"], s["amount"]) for s in settlements] == [
            ("ben@example.com", "ana@example.com", "20.00"),
            ("cy@example.com", "ana@example.com", "20.00"),
        ]

        assert client.delete(f"/expenses/{expense['id']}").status_code == 204
        assert client.get(f"/settlements/groups/{group_id}").json() == []
        assert client.get(f"/expenses/{expense['id']}").status_code == 404


class TestSettlementEndpoints:

    def test_balances_and_settlements(self, client, group_id):
        post_expense(client, group_id, "ana@example.com", "100",
                     ["ana@example.com", "ben@example.com", "cy@example.com"])

        balances = client.get(f"/settlements/groups/{group_id}/balances").json()
        assert balances == [
            {"user_id": "ana@example.com", "amount": "66.67"},
            {"user_id": "ben@example.com", "amount": "-33.33"},
            {"user_id": "cy@example.com", "amount": "-33.33"},
        ]

        settlements = client.get(f"/settlements/groups/{group_id}").json()
        assert [(s["from"], s["to"], s["amount"]) for s in settlements] == [
            ("ben@example.com", "ana@example.com", "33.33"),
            ("cy@example.com", "ana@example.com", "33.33"),
        ]

    def test_mark_paid(self, client, group_id):
        post_expense(client, group_id, "ana@example.com", "40", ["ana@example.com", "ben@example.com"])
        settlement = client.get(f"/settlements/groups/{group_id}").json()[0]

        response = client.post(f"/settlements/groups/{group_id}/{settlement['id']}/mark",
                               json={"is_settled": True})
        assert response.status_code == 200
        assert response.json()["is_settled"] is True
        assert response.json()["settled_at"] is not None

        missing = client.post(f"/settlements/groups/{group_id}/nope/mark", json={"is_settled": True})
        assert missing.status_code == 404

    def test_recompute_keeps_result(self, client, group_id):
        post_expense(client, group_id, "ben@example.com", "30", ["ana@example.com", "cy@example.com"])
        before = client.get(f"/settlements/groups/{group_id}").json()
        after = client.post(f"/settlements/groups/{group_id}/recompute").json()
        assert after == before

    def test_explain(self, client, group_id):
        post_expense(client, group_id, "ben@example.com", "30", ["ana@example.com", "cy@example.com"])
        body = client.get(f"/settlements/groups/{group_id}/explain").json()
        assert [(s["from"], s["to"]) for s in body["settlements"]] == [
            ("ana@example.com", "ben@example.com"), ("cy@example.com", "ben@example.com")
        ]
        assert body["steps"][-1] == "Total settlements: 2"

    def test_unknown_group_settlements(self, client):
        assert client.get("/settlements/groups/nope").status_code == 404
        assert client.get("/settlements/groups/nope/balances").status_code == 404
        assert client.post("/settlements/groups/nope/recompute").status_code == 404

    def test_stateless_compute(self, client):
        response = client.post("/settlements/compute", json={
            "members": ["A", "B", "C", "D"],
            "expenses": [
                {"payer": "A", "amount": "90", "participants": ["A", "B", "C"]},
            ]
        })
        assert response.status_code == 200
        body = response.json()
        assert {b["user_id"]: b["amount"] for b in body["balances"]} == {
            "A": "60.00", "B": "-30.00", "C": "-30.00", "D": "0.00"
        }
        assert body["settlements"][0]["from"] == "B"
        assert body["settlements"][0]["id"] is None

    def test_stateless_match(self, client):
        response = client.post("/settlements/match", json={
            "balances": {"A": "50", "B": "30", "C": "-40", "D": "-40"}
        })
        assert [(s["from"], s["to"], s["amount"]) for s in response.json()] == [
            ("C", "A", "40.00"), ("D", "A", "10.00"), ("D", "B", "30.00")
        ]

    def test_stateless_match_unbalanced(self, client):
        response = client.post("/settlements/match", json={"balances": {"A": "50", "B": "-49"}})
        assert response.status_code == 422
        assert "Balances not zero-sum" in response.json()["detail"]
