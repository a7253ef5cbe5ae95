import asyncio
from types import SimpleNamespace

import pytest

from budget_api.exceptions import BadRequestError, ConflictError
from budget_api.models import Category
from budget_api.services import category_service

from tests.conftest import FakeResult, FakeSession, make_user


class TestCreateCategory:

    def test_account_is_required(self):
        with pytest.raises(BadRequestError) as exc_info:
            asyncio.run(category_service.create_category(FakeSession(), make_user(), None, "Groceries"))
        assert exc_info.value.detail == "No budget account id provided"

    def test_duplicate_name(self):
        existing = Category(id="cat-1", budget_account_id="acct-1", name="Groceries")
        db = FakeSession(results=[FakeResult(rows=[SimpleNamespace(role="member")]), FakeResult(rows=[existing])])
        with pytest.raises(ConflictError) as exc_info:
            asyncio.run(category_service.create_category(db, make_user(), "acct-1", "Groceries"))
        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == "Category with this name already exists for this budget account."
        assert db.added == []
