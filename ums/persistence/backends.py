"""
Persistence backend contract and the relational and disabled variants.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from ..core.entities import Course, Student, Teacher
from ..core.enums import BackendState, Department, UNASSIGNED_TEACHER
from ..core.exceptions import PersistenceError, ValidationError
from .database import DatabaseManager

logger = logging.getLogger(__name__)


class LoadedData(NamedTuple):
    """Everything a backend holds, with enrollments already linked on both sides."""
    students: List[Student]
    teachers: List[Teacher]
    courses: List[Course]
    enrollments: List[Tuple[str, str]]

    @classmethod
    def empty(cls) -> "LoadedData":
        return cls([], [], [], [])


class PersistenceBackend(ABC):
    """Durable storage contract shared by every backend variant.

    Write methods raise PersistenceError when the store is live but the write
    fails, so the caller can undo speculative in-memory changes.
    """

    @property
    @abstractmethod
    def state(self) -> BackendState:
        pass

    @abstractmethod
    def initialize(self) -> BackendState:
        """Create the underlying storage if absent. Safe to call repeatedly."""
        pass

    @abstractmethod
    def load_all(self) -> LoadedData:
        pass

    @abstractmethod
    def insert_student(self, student: Student) -> None:
        pass

    @abstractmethod
    def insert_teacher(self, teacher: Teacher) -> None:
        pass

    @abstractmethod
    def insert_course(self, course: Course) -> None:
        pass

    @abstractmethod
    def insert_enrollment(self, student_id: str, course_id: str) -> None:
        pass

    @abstractmethod
    def update_student(self, student: Student) -> None:
        """Replace the stored name and major of a student."""
        pass

    @abstractmethod
    def update_teacher_assignment(self, course_id: str, teacher_id: Optional[str]) -> None:
        pass

    @abstractmethod
    def delete_student(self, student_id: str) -> None:
        """Delete a student together with its enrollment rows."""
        pass

    @abstractmethod
    def clear_all(self) -> None:
        """Empty every table in dependency order."""
        pass


def _text(row: Dict[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_snapshot(student_rows: Iterable[Dict[str, Any]],
                   teacher_rows: Iterable[Dict[str, Any]],
                   course_rows: Iterable[Dict[str, Any]],
                   enrollment_rows: Iterable[Dict[str, Any]]) -> LoadedData:
    """Turn raw rows into entities and relink enrollments.

    Malformed rows, unknown departments, duplicate keys and enrollments that
    reference missing entities are skipped.
    """
    students: Dict[str, Student] = {}
    for row in student_rows:
        student_id, name = _text(row, "id"), _text(row, "name")
        if not student_id or not name:
            logger.warning("Skipping malformed student row: %r", row)
            continue
        if student_id.lower() in students:
            logger.warning("Skipping duplicate student row: %s", student_id)
            continue
        students[student_id.lower()] = Student(student_id, name, _text(row, "major") or "Undeclared")

    teachers: Dict[str, Teacher] = {}
    for row in teacher_rows:
        teacher_id, name = _text(row, "id"), _text(row, "name")
        if not teacher_id or not name:
            logger.warning("Skipping malformed teacher row: %r", row)
            continue
        if teacher_id.lower() in teachers:
            logger.warning("Skipping duplicate teacher row: %s", teacher_id)
            continue
        try:
            department = Department.parse(_text(row, "department"))
        except ValidationError as e:
            logger.warning("Skipping teacher %s: %s", teacher_id, e.message)
            continue
        teachers[teacher_id.lower()] = Teacher(teacher_id, name, department,
                                               _text(row, "subject") or "General")

    courses: Dict[str, Course] = {}
    for row in course_rows:
        course_id, name = _text(row, "id"), _text(row, "name")
        if not course_id or not name:
            logger.warning("Skipping malformed course row: %r", row)
            continue
        if course_id.lower() in courses:
            logger.warning("Skipping duplicate course row: %s", course_id)
            continue
        try:
            department = Department.parse(_text(row, "department"))
        except ValidationError as e:
            logger.warning("Skipping course %s: %s", course_id, e.message)
            continue
        course = Course(course_id, name, department)
        course.assign_teacher(_text(row, "teacher_id"))
        courses[course_id.lower()] = course

    enrollments: List[Tuple[str, str]] = []
    for row in enrollment_rows:
        student = students.get((_text(row, "student_id") or "").lower())
        course = courses.get((_text(row, "course_id") or "").lower())
        if student is None or course is None:
            logger.warning("Skipping enrollment with unknown reference: %r", row)
            continue
        if student.is_enrolled_in(course.id):
            continue
        student.enroll(course.id)
        course.add_student(student.id)
        enrollments.append((student.id, course.id))

    return LoadedData(list(students.values()), list(teachers.values()),
                      list(courses.values()), enrollments)


RELATIONAL_SCHEMA = {
    "STUDENTS": """
        CREATE TABLE IF NOT EXISTS STUDENTS (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            major TEXT
        )
    """,
    "TEACHERS": """
        CREATE TABLE IF NOT EXISTS TEACHERS (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            department TEXT,
            subject TEXT
        )
    """,
    "COURSES": """
        CREATE TABLE IF NOT EXISTS COURSES (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            department TEXT,
            teacher_id TEXT,
            FOREIGN KEY(teacher_id) REFERENCES TEACHERS(id)
        )
    """,
    "ENROLLMENTS": """
        CREATE TABLE IF NOT EXISTS ENROLLMENTS (
            student_id TEXT NOT NULL,
            course_id TEXT NOT NULL,
            PRIMARY KEY (student_id, course_id),
            FOREIGN KEY(student_id) REFERENCES STUDENTS(id),
            FOREIGN KEY(course_id) REFERENCES COURSES(id)
        )
    """,
}

# Children before parents.
CLEAR_ORDER = ("ENROLLMENTS", "COURSES", "TEACHERS", "STUDENTS")


class RelationalBackend(PersistenceBackend):
    """Backend storing one row per entity in four SQL tables."""

    def __init__(self, database: DatabaseManager):
        self._database = database

    @property
    def state(self) -> BackendState:
        return BackendState.RELATIONAL

    @property
    def database(self) -> DatabaseManager:
        return self._database

    def initialize(self) -> BackendState:
        self._database.ping()
        missing = {table: ddl for table, ddl in RELATIONAL_SCHEMA.items()
                   if not self._database.table_exists(table)}
        if missing:
            self._database.create_tables(missing)
            logger.info("Created tables: %s", ", ".join(missing))
        logger.info("Relational store ready at %s", self._database.description)
        return self.state

    def load_all(self) -> LoadedData:
        try:
            return build_snapshot(
                self._database.execute_query("SELECT id, name, major FROM STUDENTS"),
                self._database.execute_query("SELECT id, name, department, subject FROM TEACHERS"),
                self._database.execute_query("SELECT id, name, department, teacher_id FROM COURSES"),
                self._database.execute_query("SELECT student_id, course_id FROM ENROLLMENTS"),
            )
        except PersistenceError as e:
            raise PersistenceError(f"Failed to load data: {e.message}") from e

    def _write(self, action: str, query: str, params: tuple) -> int:
        try:
            return self._database.execute_update(query, params)
        except PersistenceError as e:
            logger.error("Failed to %s: %s", action, e.message)
            raise PersistenceError(f"Failed to {action}: {e.message}",
                                   error_code="write_failed") from e

    def insert_student(self, student: Student) -> None:
        self._write("insert student",
                    "INSERT INTO STUDENTS(id, name, major) VALUES(?, ?, ?)",
                    (student.id, student.name, student.major))

    def insert_teacher(self, teacher: Teacher) -> None:
        self._write("insert teacher",
                    "INSERT INTO TEACHERS(id, name, department, subject) VALUES(?, ?, ?, ?)",
                    (teacher.id, teacher.name, teacher.department.value, teacher.subject))

    def insert_course(self, course: Course) -> None:
        row = course.to_dict()
        self._write("insert course",
                    "INSERT INTO COURSES(id, name, department, teacher_id) VALUES(?, ?, ?, ?)",
                    (row["id"], row["name"], row["department"], row["teacher_id"]))

    def insert_enrollment(self, student_id: str, course_id: str) -> None:
        self._write("insert enrollment",
                    "INSERT INTO ENROLLMENTS(student_id, course_id) VALUES(?, ?)",
                    (student_id, course_id))

    def update_student(self, student: Student) -> None:
        self._write("update student",
                    "UPDATE STUDENTS SET name = ?, major = ? WHERE id = ?",
                    (student.name, student.major, student.id))

    def update_teacher_assignment(self, course_id: str, teacher_id: Optional[str]) -> None:
        if teacher_id == UNASSIGNED_TEACHER:
            teacher_id = None
        self._write("update teacher assignment",
                    "UPDATE COURSES SET teacher_id = ? WHERE id = ?",
                    (teacher_id, course_id))

    def delete_student(self, student_id: str) -> None:
        try:
            self._database.execute_transaction([
                ("DELETE FROM ENROLLMENTS WHERE student_id = ?", (student_id,)),
                ("DELETE FROM STUDENTS WHERE id = ?", (student_id,)),
            ])
        except PersistenceError as e:
            logger.error("Failed to delete student %s: %s", student_id, e.message)
            raise PersistenceError(f"Failed to delete student: {e.message}",
                                   error_code="write_failed") from e

    def clear_all(self) -> None:
        try:
            self._database.execute_transaction(
                [(f"DELETE FROM {table}", None) for table in CLEAR_ORDER]
            )
        except PersistenceError as e:
            logger.error("Failed to clear database: %s", e.message)
            raise PersistenceError(f"Failed to clear database: {e.message}",
                                   error_code="write_failed") from e
        logger.info("Database tables cleared")


class DisabledBackend(PersistenceBackend):
    """No-op backend used when no durable store could be provisioned.

    Every write reports success so the record store keeps working in memory.
    """

    @property
    def state(self) -> BackendState:
        return BackendState.DISABLED

    def _skip(self, operation: str) -> None:
        logger.warning("Persistence disabled; %s skipped.", operation)

    def initialize(self) -> BackendState:
        return self.state

    def load_all(self) -> LoadedData:
        self._skip("load_all")
        return LoadedData.empty()

    def insert_student(self, student: Student) -> None:
        self._skip("insert_student")

    def insert_teacher(self, teacher: Teacher) -> None:
        self._skip("insert_teacher")

    def insert_course(self, course: Course) -> None:
        self._skip("insert_course")

    def insert_enrollment(self, student_id: str, course_id: str) -> None:
        self._skip("insert_enrollment")

    def update_student(self, student: Student) -> None:
        self._skip("update_student")

    def update_teacher_assignment(self, course_id: str, teacher_id: Optional[str]) -> None:
        self._skip("update_teacher_assignment")

    def delete_student(self, student_id: str) -> None:
        self._skip("delete_student")

    def clear_all(self) -> None:
        self._skip("clear_all")
