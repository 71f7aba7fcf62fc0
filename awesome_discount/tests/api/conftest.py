import os

os.environ.setdefault("LOG_JSON", "false")  # leesbare logs tijdens tests

import pytest
from fastapi.testclient import TestClient

from awesome_discount.api.discounts import get_tag_client
from awesome_discount.main import app


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def with_tag_client():
    # zet een fake tag client in plaats van de echte Shopify client
    def _install(fake):
        app.dependency_overrides[get_tag_client] = lambda: fake

    return _install
