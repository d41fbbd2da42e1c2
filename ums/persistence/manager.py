"""
One-shot persistence negotiation.

At ``initialize()`` the manager probes, in order, a relational store and a
flat-file directory, and settles on the first that works. If neither does it
falls back to a disabled backend. The choice is sticky for the lifetime of the
manager; there is no later upgrade to a richer backend.
"""

import logging
from typing import Callable, List, Optional, Tuple

from ..core.entities import Course, Student, Teacher
from ..core.enums import BackendState
from ..core.exceptions import BackendUnavailableError, PersistenceError, UmsException
from .backends import DisabledBackend, LoadedData, PersistenceBackend, RelationalBackend
from .database import DatabaseFactory
from .flat_file import FlatFileBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], PersistenceBackend]


class PersistenceManager(PersistenceBackend):
    """Backend facade that negotiates its concrete variant once."""

    def __init__(self, candidates: Optional[List[Tuple[str, BackendFactory]]] = None):
        self._candidates = list(candidates or [])
        self._active: Optional[PersistenceBackend] = None
        self._probe_failures: List[str] = []

    @classmethod
    def from_config(cls, config) -> "PersistenceManager":
        """Build the probe order from a UmsConfig."""
        candidates: List[Tuple[str, BackendFactory]] = []
        if config.persistence_enabled:
            if config.relational_enabled:
                candidates.append((
                    f"relational ({config.database_type})",
                    lambda: RelationalBackend(
                        DatabaseFactory.create_database(config.database_type, **config.database_config)
                    ),
                ))
            if config.flat_file_enabled:
                candidates.append((
                    f"flat-file ({config.flat_file_dir})",
                    lambda: FlatFileBackend(config.flat_file_dir),
                ))
        return cls(candidates)

    @property
    def initialized(self) -> bool:
        return self._active is not None

    @property
    def state(self) -> BackendState:
        if self._active is None:
            raise PersistenceError("Persistence has not been initialized")
        return self._active.state

    @property
    def active_backend(self) -> Optional[PersistenceBackend]:
        return self._active

    @property
    def probe_failures(self) -> List[str]:
        return list(self._probe_failures)

    def initialize(self) -> BackendState:
        """Pick a backend. Never raises; repeated calls keep the first choice."""
        if self._active is not None:
            return self._active.state
        try:
            self._active = self._negotiate()
        except BackendUnavailableError as e:
            logger.warning("%s Continuing in in-memory mode; changes will not be saved.", e.message)
            self._active = DisabledBackend()
        logger.info("Persistence state: %s", self._active.state.value)
        return self._active.state

    def _negotiate(self) -> PersistenceBackend:
        for label, factory in self._candidates:
            try:
                backend = factory()
                backend.initialize()
                return backend
            except (UmsException, OSError) as e:
                message = getattr(e, "message", str(e))
                self._probe_failures.append(f"{label}: {message}")
                logger.warning("Persistence probe %s failed: %s", label, message)
        raise BackendUnavailableError(
            "No durable backend available.",
            error_code="backend_unavailable",
            details={"failures": list(self._probe_failures)},
        )

    @property
    def _backend(self) -> PersistenceBackend:
        if self._active is None:
            raise PersistenceError("Persistence has not been initialized")
        return self._active

    def load_all(self) -> LoadedData:
        return self._backend.load_all()

    def insert_student(self, student: Student) -> None:
        self._backend.insert_student(student)

    def insert_teacher(self, teacher: Teacher) -> None:
        self._backend.insert_teacher(teacher)

    def insert_course(self, course: Course) -> None:
        self._backend.insert_course(course)

    def insert_enrollment(self, student_id: str, course_id: str) -> None:
        self._backend.insert_enrollment(student_id, course_id)

    def update_student(self, student: Student) -> None:
        self._backend.update_student(student)

    def update_teacher_assignment(self, course_id: str, teacher_id: Optional[str]) -> None:
        self._backend.update_teacher_assignment(course_id, teacher_id)

    def delete_student(self, student_id: str) -> None:
        self._backend.delete_student(student_id)

    def clear_all(self) -> None:
        self._backend.clear_all()
