"""Tests for POST /api/actions unified mutation endpoint."""

from uuid import uuid4

import pytest

from api.base import ErrorCodes


def _receivable_of(client, income_id: str) -> dict:
    response = client.get("/api/data", params={"type": "income", "id": income_id, "include": "receivable"})
    assert response.status_code == 200, response.text
    return response.json()["data"]["receivable"]


# =============================================================================
# AUTHENTICATION & VALIDATION
# =============================================================================


class TestActionsAuthentication:

    def test_unauthenticated_returns_401(self, unauthed_client):
        response = unauthed_client.post(
            "/api/actions", json={"domain": "expense", "action": "record", "data": {}}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == ErrorCodes.NOT_AUTHENTICATED

    def test_viewer_cannot_write(self, act, viewer_client):
        """Viewers are read-only."""
        response = act("expense", "record", {"amount": "5.00", "reason": "Tape"}, as_client=viewer_client)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == ErrorCodes.AUTHORIZATION_DENIED


class TestActionsValidation:

    def test_unknown_domain(self, act):
        response = act("invoice", "create", {})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCodes.INVALID_REQUEST
        assert "Unknown domain" in response.json()["error"]["message"]

    def test_unknown_action(self, act):
        response = act("receivable", "refund", {})

        assert response.status_code == 400
        assert "not allowed" in response.json()["error"]["message"]

    def test_malformed_body(self, client):
        response = client.post("/api/actions", json={"domain": "expense"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == ErrorCodes.VALIDATION_ERROR

    def test_invalid_model_data(self, act):
        """Schema violations surface as VALIDATION_ERROR."""
        response = act("expense", "record", {"amount": "-1.00", "reason": "Refund"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == ErrorCodes.VALIDATION_ERROR


# =============================================================================
# DOMAIN ACTIONS
# =============================================================================


class TestCustomerActions:

    def test_create(self, act):
        response = act("customer", "create", {
            "name": "Cafe Aurora",
            "join_date": "2024-01-15",
            "subscription_type": "annual",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["name"] == "Cafe Aurora"
        assert body["data"]["expiry_date"] == "2025-01-15"

    def test_update(self, act):
        customer = act("customer", "create", {
            "name": "Cafe Aurora", "join_date": "2024-01-15", "subscription_type": "annual",
        }).json()["data"]

        response = act("customer", "update", {"id": customer["id"], "menu_url": "https://menus.test/aurora"})

        assert response.status_code == 200
        assert response.json()["data"]["menu_url"] == "https://menus.test/aurora"
        assert response.json()["data"]["name"] == "Cafe Aurora"

    def test_renew(self, act, client):
        customer = act("customer", "create", {
            "name": "Lapsed", "join_date": "2023-01-15", "subscription_type": "annual", "is_active": False,
        }).json()["data"]

        response = act("customer", "renew", {"id": customer["id"]})

        assert response.status_code == 200
        assert response.json()["data"]["expiry_date"] == "2025-01-15"
        assert response.json()["data"]["is_active"] is True
        activities = client.get("/api/data", params={"type": "activities", "id": customer["id"]}).json()["data"]
        assert activities[0]["type"] == "subscription_renewed"

    def test_renew_unknown_returns_404(self, act):
        response = act("customer", "renew", {"id": str(uuid4())})

        assert response.status_code == 404

    def test_delete_requires_admin(self, act):
        customer = act("customer", "create", {
            "name": "Cafe", "join_date": "2024-01-15", "subscription_type": "annual",
        }).json()["data"]

        assert act("customer", "delete", {"id": customer["id"]}).status_code == 403

    def test_delete_referenced_returns_409(self, act, admin_client):
        customer = act("customer", "create", {
            "name": "Regular", "join_date": "2024-01-15", "subscription_type": "annual",
        }).json()["data"]
        act("income", "record", {"customer_id": customer["id"], "type": "subscription", "amount": "99.00"})

        response = act("customer", "delete", {"id": customer["id"]}, as_client=admin_client)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == ErrorCodes.ENTITY_IN_USE


class TestIncomeActions:

    def test_record_plain_sale(self, act):
        response = act("income", "record", {"type": "prints", "print_type": "A3 posters", "amount": "240.00"})

        assert response.status_code == 200
        assert response.json()["data"]["amount"] == "240.00"
        assert response.json()["data"]["is_deposit"] is False

    def test_record_deposit_opens_receivable(self, client, deposit):
        entry = deposit("30000.00", "100000.00")

        receivable = _receivable_of(client, entry["id"])
        assert receivable["total_amount"] == "100000.00"
        assert receivable["remaining_amount"] == "70000.00"
        assert receivable["status"] == "partial"

    def test_unknown_customer(self, act):
        response = act("income", "record", {
            "customer_id": str(uuid4()),
            "type": "subscription",
            "amount": "99.00",
        })

        assert response.status_code == 404
        assert response.json()["error"]["code"] == ErrorCodes.NOT_FOUND

    def test_deposit_above_total_rejected(self, act, services):
        response = act("income", "record", {
            "type": "deposit",
            "amount": "120000.00",
            "is_deposit": True,
            "total_amount": "100000.00",
        })

        assert response.status_code == 422
        assert services["income"].list() == []

    def test_update_deposit_amount_rejected(self, act, deposit):
        entry = deposit("30.00", "100.00")

        response = act("income", "update", {"id": entry["id"], "amount": "40.00"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCodes.INVALID_DEPOSIT

    def test_delete_with_receivable_returns_409(self, act, admin_client, client, deposit):
        """The receivable has to go first."""
        entry = deposit("30.00", "100.00")
        receivable = _receivable_of(client, entry["id"])

        response = act("income", "delete", {"id": entry["id"]}, as_client=admin_client)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == ErrorCodes.ENTITY_IN_USE

        act("receivable", "delete", {"id": receivable["id"]}, as_client=admin_client)
        response = act("income", "delete", {"id": entry["id"]}, as_client=admin_client)
        assert response.status_code == 200
        assert response.json()["data"] == {"deleted": True}


class TestExpenseActions:

    def test_record(self, act):
        response = act("expense", "record", {"amount": "80.50", "reason": "Toner"})

        assert response.status_code == 200
        assert response.json()["data"]["reason"] == "Toner"

    def test_update_and_delete(self, act, admin_client, services):
        expense = act("expense", "record", {"amount": "80.50", "reason": "Toner"}).json()["data"]

        updated = act("expense", "update", {"id": expense["id"], "reason": "Toner, black"})
        assert updated.status_code == 200
        assert updated.json()["data"]["reason"] == "Toner, black"

        assert act("expense", "delete", {"id": expense["id"]}).status_code == 403
        assert act("expense", "delete", {"id": expense["id"]}, as_client=admin_client).status_code == 200
        assert services["expense"].list() == []


class TestReceivableActions:

    def test_apply_payment_settles(self, act, client, deposit):
        """Paying the remainder marks the receivable paid."""
        receivable = _receivable_of(client, deposit("30000.00", "100000.00")["id"])

        response = act("receivable", "apply_payment", {"id": receivable["id"], "amount": "70000.00"})

        assert response.status_code == 200
        assert response.json()["data"]["amount"] == "70000.00"
        updated = client.get("/api/data", params={"type": "receivables", "id": receivable["id"]}).json()["data"]
        assert updated["status"] == "paid"
        assert updated["remaining_amount"] == "0.00"

    def test_overpayment_returns_409(self, act, client, deposit):
        receivable = _receivable_of(client, deposit("30000.00", "100000.00")["id"])
        act("receivable", "apply_payment", {"id": receivable["id"], "amount": "70000.00"})

        response = act("receivable", "apply_payment", {"id": receivable["id"], "amount": "1.00"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == ErrorCodes.OVERPAYMENT_REJECTED

    @pytest.mark.parametrize("amount", ["-5", "0", "1.005", "abc", "NaN", 12.5])
    def test_invalid_amount_returns_400(self, act, client, deposit, amount):
        receivable = _receivable_of(client, deposit("30.00", "100.00")["id"])

        response = act("receivable", "apply_payment", {"id": receivable["id"], "amount": amount})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCodes.INVALID_AMOUNT

    def test_unknown_receivable_returns_404(self, act):
        response = act("receivable", "apply_payment", {"id": str(uuid4()), "amount": "10.00"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == ErrorCodes.NOT_FOUND

    def test_missing_id_returns_400(self, act):
        response = act("receivable", "apply_payment", {"amount": "10.00"})

        assert response.status_code == 400
        assert "Missing field" in response.json()["error"]["message"]

    def test_malformed_id_returns_400(self, act):
        response = act("receivable", "apply_payment", {"id": "not-a-uuid", "amount": "10.00"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCodes.INVALID_REQUEST

    def test_payment_attributed_to_caller(self, act, client, deposit, editor_user_id):
        receivable = _receivable_of(client, deposit("30.00", "100.00")["id"])
        act("receivable", "apply_payment", {"id": receivable["id"], "amount": "10.00"})

        activities = client.get("/api/data", params={"type": "activities", "id": receivable["id"]}).json()["data"]
        assert activities[0]["type"] == "payment_received"
        assert activities[0]["actor_id"] == str(editor_user_id)

    def test_delete_requires_admin(self, act, client, deposit):
        receivable = _receivable_of(client, deposit("30.00", "100.00")["id"])

        response = act("receivable", "delete", {"id": receivable["id"]})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == ErrorCodes.AUTHORIZATION_DENIED

    def test_admin_deletes(self, act, admin_client, client, deposit):
        receivable = _receivable_of(client, deposit("30.00", "100.00")["id"])

        response = act("receivable", "delete", {"id": receivable["id"]}, as_client=admin_client)

        assert response.status_code == 200
        assert response.json()["data"] == {"deleted": True}
        missing = client.get("/api/data", params={"type": "receivables", "id": receivable["id"]})
        assert missing.status_code == 404

    def test_delete_missing_returns_404(self, act, admin_client):
        response = act("receivable", "delete", {"id": str(uuid4())}, as_client=admin_client)

        assert response.status_code == 404
