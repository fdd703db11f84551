"""Shared fixtures for kintree tests."""
import pytest

from kintree.models import FamilyMember, FamilyRelation, Gender
from kintree.store import FamilyStore


def member(member_id, gender="male", is_self=False, birth_date=None, nickname=None):
    return FamilyMember(
        id=member_id,
        nickname=nickname or member_id,
        gender=Gender(gender),
        is_self=is_self,
        birth_date=birth_date,
    )


def relation(from_id, to_id, relation_type, relation_id=None):
    return FamilyRelation(
        id=relation_id or f"{from_id}-{relation_type}-{to_id}",
        from_member_id=from_id,
        to_member_id=to_id,
        relation_type=relation_type,
    )


@pytest.fixture
def store(tmp_path):
    s = FamilyStore.open(tmp_path / "kintree.db")
    yield s
    s.close()


@pytest.fixture
def client(tmp_path, monkeypatch):
    from fastapi.testclient import TestClient

    from kintree import config
    from kintree.main import app

    monkeypatch.setattr(config, "DB_PATH", str(tmp_path / "api.db"))
    with TestClient(app) as c:
        yield c
