"""Shared fixtures: an isolated RecordStore per test and an HTTP client on it."""

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.schemas import StudentCreate, SubjectCreate
from app.services.record_store import RecordStore


@pytest.fixture
def store():
    """Empty in-memory store, not shared with any other test."""
    return RecordStore()


@pytest.fixture
def client(store):
    """TestClient for an app serving `store`."""
    return TestClient(create_app(store))


@pytest.fixture
def make_student():
    """Factory for StudentCreate payloads with sensible defaults."""
    def _make(student_id, cgpa="3.00", credits=15, intake="Jun-25", **overrides):
        fields = {
            "id": student_id,
            "name": f"Student {student_id}",
            "email": f"{student_id}@uow.edu.my",
            "intake": intake,
            "programme": "Bachelor of Computer Science (Hons)",
            "cgpa": cgpa,
            "credits": credits,
        }
        fields.update(overrides)
        return StudentCreate(**fields)
    return _make


@pytest.fixture
def make_subject():
    """Factory for SubjectCreate payloads."""
    def _make(code, student_id=None, **overrides):
        fields = {
            "code": code,
            "name": f"Subject {code}",
            "grade": "A",
            "status": "pass",
            "student_id": student_id,
        }
        fields.update(overrides)
        return SubjectCreate(**fields)
    return _make
