import pytest

from cookbook.store.db import connect, ensure_db


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "cookbook.db")
    ensure_db(path)
    return path


@pytest.fixture
def conn(db_path):
    c = connect(db_path)
    yield c
    c.close()


def pancakes(**overrides):
    payload = {
        "title": "Pancakes",
        "description": "Fluffy weekend pancakes",
        "servings": 4,
        "preptime": 10,
        "cooktime": 15,
        "notes": None,
        "ingredients": [
            {"name": "all-purpose flour", "amount": 1.5, "unit": "cup"},
            {"name": "milk", "amount": 1.25, "unit": "cup"},
            {"name": "large eggs", "amount": 1, "unit": "whole"},
        ],
        "instructions": [
            {"order": 1, "content": "Whisk the dry ingredients."},
            {"order": 2, "content": "Stir in milk and egg, then cook on a hot griddle."},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_payload():
    return pancakes
