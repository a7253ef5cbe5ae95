import pytest

from budget_api.exceptions import NotFoundError
from budget_api.models import PlaidItem
from budget_api.services import admin_service


class TestRegistry:

    def test_display_name(self):
        assert admin_service.display_name("budgetAccounts") == "budget Accounts"
        assert admin_service.display_name("user") == "user"

    def test_available_tables(self):
        tables = admin_service.get_available_tables()
        assert len(tables) == 19
        names = {t["name"] for t in tables}
        assert {"user", "transactions", "emailConversations"} <= names

    def test_unknown_table(self):
        with pytest.raises(NotFoundError) as exc_info:
            admin_service.get_table_config("secrets")
        assert exc_info.value.detail == "Table secrets not found"

    def test_editable_values_drop_other_fields(self):
        config = admin_service.get_table_config("debts")
        assert admin_service.editable_values(config, {"name": "Car", "id": "x", "budget_account_id": "y"}) == {
            "name": "Car"
        }

    def test_schema_field_types(self):
        schema = admin_service.get_table_schema("debts")
        types = {f["name"]: f["type"] for f in schema["fields"]}
        assert types == {
            "name": "string",
            "payment_amount": "number",
            "interest_rate": "number",
            "has_balance": "boolean",
        }
        assert schema["search_fields"] == ["name"]


class TestPagination:

    def test_middle_page(self):
        assert admin_service.pagination(2, 50, 120) == {
            "page": 2,
            "pageSize": 50,
            "totalItems": 120,
            "totalPages": 3,
            "hasNext": True,
            "hasPrev": True,
        }

    def test_empty_table(self):
        block = admin_service.pagination(1, 50, 0)
        assert block["totalPages"] == 0
        assert block["hasNext"] is False
        assert block["hasPrev"] is False


class TestSerialize:

    def test_access_token_is_hidden(self):
        item = PlaidItem(id="p1", budget_account_id="a", user_id="u", plaid_item_id="item",
                         plaid_access_token="access-sandbox-secret", status="active")
        record = admin_service.serialize_record(item)
        assert record["plaid_item_id"] == "item"
        assert "plaid_access_token" not in record
