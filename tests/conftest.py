from __future__ import annotations

import pytest

from src.school_attendance.school_attendance.core.enums import RoleName
from src.school_attendance.school_attendance.main import create_app

from tests.support import World, build_test_container, make_actor


@pytest.fixture
def world():
    w = World()
    w.add_district("Distrito 01-01", "01-01", district_id=1)
    w.add_district("Distrito 02-03", "02-03", district_id=2)
    w.add_institution("Liceo Salomé Ureña", district_id=1, institution_id=7)
    w.add_institution("Escuela Duarte", district_id=2, institution_id=8)
    return w


@pytest.fixture
def actor():
    return make_actor


@pytest.fixture
def inst_admin():
    return make_actor(RoleName.INSTITUTION_ADMIN, user_id=10, institution_id=7)


@pytest.fixture
def app(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=build_test_container(world))


@pytest.fixture
def client(app):
    return app.test_client()
