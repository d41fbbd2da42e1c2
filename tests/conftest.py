"""
Shared fixtures: temporary backends and a fault-injecting backend wrapper.
"""

import pytest

from ums.core.data_model import RecordStore
from ums.core.exceptions import PersistenceError
from ums.persistence import (
    DisabledBackend, FlatFileBackend, PersistenceBackend, RelationalBackend, SQLiteDatabase,
)
from ums.services import UniversityService


class FaultyBackend(PersistenceBackend):
    """Delegates to another backend but raises PersistenceError for chosen operations."""

    def __init__(self, inner=None, fail_on=()):
        self.inner = inner or DisabledBackend()
        self.fail_on = set(fail_on)
        self.calls = []

    def _call(self, name, *args):
        self.calls.append(name)
        if name in self.fail_on:
            raise PersistenceError(f"injected failure in {name}")
        return getattr(self.inner, name)(*args)

    @property
    def state(self):
        return self.inner.state

    def initialize(self):
        return self._call("initialize")

    def load_all(self):
        return self._call("load_all")

    def insert_student(self, student):
        self._call("insert_student", student)

    def insert_teacher(self, teacher):
        self._call("insert_teacher", teacher)

    def insert_course(self, course):
        self._call("insert_course", course)

    def insert_enrollment(self, student_id, course_id):
        self._call("insert_enrollment", student_id, course_id)

    def update_student(self, student):
        self._call("update_student", student)

    def update_teacher_assignment(self, course_id, teacher_id):
        self._call("update_teacher_assignment", course_id, teacher_id)

    def delete_student(self, student_id):
        self._call("delete_student", student_id)

    def clear_all(self):
        self._call("clear_all")


@pytest.fixture()
def sqlite_path(tmp_path):
    return str(tmp_path / "ums.db")


@pytest.fixture()
def relational_backend(sqlite_path):
    backend = RelationalBackend(SQLiteDatabase(sqlite_path))
    backend.initialize()
    return backend


@pytest.fixture()
def flat_file_backend(tmp_path):
    backend = FlatFileBackend(str(tmp_path / "data"))
    backend.initialize()
    return backend


@pytest.fixture(params=["relational", "flat_file"])
def durable_backend(request, tmp_path):
    """Each persistent backend variant, plus a factory reopening the same location."""
    if request.param == "relational":
        path = str(tmp_path / "ums.db")

        def reopen():
            backend = RelationalBackend(SQLiteDatabase(path))
            backend.initialize()
            return backend
    else:
        path = str(tmp_path / "data")

        def reopen():
            backend = FlatFileBackend(path)
            backend.initialize()
            return backend
    return reopen(), reopen


@pytest.fixture()
def make_service():
    def _make(backend=None, capacity=None):
        backend = backend if backend is not None else DisabledBackend()
        if capacity is None:
            return UniversityService(RecordStore(), backend)
        return UniversityService(RecordStore(), backend, capacity=capacity)
    return _make


@pytest.fixture()
def faulty_backend():
    return FaultyBackend


@pytest.fixture()
def seeded_service(make_service):
    """In-memory service with two students, a teacher and two courses."""
    service = make_service()
    assert service.add_student("S101", "Alice Smith", "Computer Science")
    assert service.add_student("S102", "Bob Johnson", "Business")
    assert service.add_teacher("T201", "Dr. Alan Turing", "COMPUTER_SCIENCE", "Algorithms")
    assert service.add_course("CS101", "Intro to Programming", "COMPUTER_SCIENCE")
    assert service.add_course("BUS101", "Principles of Management", "BUSINESS_ADMINISTRATION")
    return service
