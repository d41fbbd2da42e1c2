"""
University service: validation, write-through persistence and rollback.

Every mutating operation follows validate -> persist -> apply-to-memory, and
returns a boolean. The only exception is enrollment, which links both sides in
memory first and then persists; if persisting fails the link is undone before
the failure is reported.
"""

import logging
from typing import List, Optional, Union

from ..core.data_model import RecordStore
from ..core.entities import Course, Student, Teacher
from ..core.enums import BackendState, Department, MAX_COURSE_CAPACITY
from ..core.exceptions import (
    CapacityError, NotFoundError, PersistenceError, UmsException, ValidationError,
)
from ..core.schemas import CourseCreate, MajorUpdate, StudentCreate, TeacherCreate, validate_input
from ..persistence.backends import PersistenceBackend

logger = logging.getLogger(__name__)


def normalize_id(raw: Optional[str]) -> Optional[str]:
    """Reduce user input to its leading identifier token.

    Tolerates text copied from a listing, e.g. ``"CS101 [COMPUTER_SCIENCE]"``
    or ``"S101 Alice Smith"``.
    """
    if raw is None:
        return None
    value = raw.strip()
    bracket = value.find("[")
    if bracket >= 0:
        value = value[:bracket].strip()
    tokens = value.split()
    return tokens[0] if tokens else ""


class UniversityService:
    """Coordinates the record store and the persistence backend."""

    def __init__(self, store: RecordStore, backend: PersistenceBackend,
                 capacity: int = MAX_COURSE_CAPACITY):
        if store is None or backend is None:
            raise ValueError("Record store and persistence backend cannot be None")
        if capacity < 1:
            raise ValueError("Course capacity must be positive")
        self._store = store
        self._backend = backend
        self._capacity = capacity
        self.last_error: Optional[UmsException] = None

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def persistence_state(self) -> Optional[BackendState]:
        try:
            return self._backend.state
        except PersistenceError:
            return None

    # -- startup ---------------------------------------------------------------

    def start(self) -> BackendState:
        """Negotiate the backend and load whatever it holds."""
        state = self._backend.initialize()
        self.load_data_from_database()
        return state

    def load_data_from_database(self) -> bool:
        self.last_error = None
        try:
            snapshot = self._backend.load_all()
        except PersistenceError as e:
            self.last_error = e
            logger.error("Could not load data: %s", e.message)
            return False
        self._store.load(snapshot)
        logger.info("Loaded %d students, %d teachers, %d courses, %d enrollments",
                    len(snapshot.students), len(snapshot.teachers),
                    len(snapshot.courses), len(snapshot.enrollments))
        return True

    # -- helpers ---------------------------------------------------------------

    def _fail(self, action: str, error: UmsException) -> bool:
        self.last_error = error
        logger.warning("Could not %s: %s", action, error.message)
        return False

    def _require_student(self, student_id: Optional[str]) -> Student:
        student = self._store.find_student(student_id)
        if student is None:
            raise NotFoundError(f"Student not found ({student_id})", error_code="student_not_found")
        return student

    def _require_teacher(self, teacher_id: Optional[str]) -> Teacher:
        teacher = self._store.find_teacher(teacher_id)
        if teacher is None:
            raise NotFoundError(f"Teacher not found ({teacher_id})", error_code="teacher_not_found")
        return teacher

    def _require_course(self, course_id: Optional[str]) -> Course:
        course = self._store.find_course(course_id)
        if course is None:
            raise NotFoundError(f"Course not found ({course_id})", error_code="course_not_found")
        return course

    @staticmethod
    def _reject_duplicate(existing, kind: str, entity_id: str) -> None:
        if existing is not None:
            raise ValidationError(f"{kind} ID {entity_id} already exists.",
                                  error_code="duplicate_id", details={"existing": existing.id})

    @staticmethod
    def _link(student: Student, course: Course) -> None:
        student.enroll(course.id)
        course.add_student(student.id)

    @staticmethod
    def _unlink(student: Student, course: Course) -> None:
        student.unenroll(course.id)
        course.remove_student(student.id)

    # -- students ----------------------------------------------------------------

    def add_student(self, student_id: str, name: str, major: str = "Undeclared") -> bool:
        self.last_error = None
        try:
            data = validate_input(StudentCreate, id=student_id, name=name, major=major)
            self._reject_duplicate(self._store.find_student(data.id), "Student", data.id)
            student = Student(data.id, data.name, data.major)
            self._backend.insert_student(student)
            self._store.add_student(student)
        except UmsException as e:
            return self._fail("add student", e)
        logger.info("Student added: %s", student.name)
        return True

    def remove_student(self, student_id: str) -> bool:
        self.last_error = None
        try:
            student = self._require_student(normalize_id(student_id))
            # The backend purges enrollment rows along with the student row.
            self._backend.delete_student(student.id)
        except UmsException as e:
            return self._fail("remove student", e)
        for course_id in student.enrolled_course_ids:
            course = self._store.find_course(course_id)
            if course is not None:
                self._unlink(student, course)
        self._store.remove_student(student)
        logger.info("Student removed: %s", student.id)
        return True

    def update_student_major(self, student_id: str, new_major: str) -> bool:
        self.last_error = None
        try:
            data = validate_input(MajorUpdate, major=new_major)
            student = self._require_student(normalize_id(student_id))
            old_major = student.major
            student.major = data.major
            try:
                self._backend.update_student(student)
            except Exception:
                student.major = old_major
                raise
        except UmsException as e:
            return self._fail("update student major", e)
        logger.info("Student %s major updated to %s", student.id, student.major)
        return True

    def list_students(self) -> List[Student]:
        return self._store.students

    # -- teachers ----------------------------------------------------------------

    def add_teacher(self, teacher_id: str, name: str, department: Union[Department, str],
                    subject: str = "General") -> bool:
        self.last_error = None
        try:
            department = Department.parse(department)
            data = validate_input(TeacherCreate, id=teacher_id, name=name,
                                  department=department, subject=subject)
            self._reject_duplicate(self._store.find_teacher(data.id), "Teacher", data.id)
            teacher = Teacher(data.id, data.name, data.department, data.subject)
            self._backend.insert_teacher(teacher)
            self._store.add_teacher(teacher)
        except UmsException as e:
            return self._fail("add teacher", e)
        logger.info("Teacher added: %s", teacher.name)
        return True

    def assign_teacher(self, teacher_id: str, course_id: str) -> bool:
        """Assign a teacher to a course. Departments are not cross-checked."""
        self.last_error = None
        try:
            teacher = self._require_teacher(normalize_id(teacher_id))
            course = self._require_course(normalize_id(course_id))
            # Memory is only touched once the backend has accepted the change.
            self._backend.update_teacher_assignment(course.id, teacher.id)
            course.assign_teacher(teacher.id)
        except UmsException as e:
            return self._fail("assign teacher", e)
        logger.info("Teacher %s assigned to %s", teacher.name, course.name)
        return True

    def list_teachers(self) -> List[Teacher]:
        return self._store.teachers

    # -- courses -----------------------------------------------------------------

    def add_course(self, course_id: str, name: str, department: Union[Department, str]) -> bool:
        self.last_error = None
        try:
            department = Department.parse(department)
            data = validate_input(CourseCreate, id=course_id, name=name, department=department)
            self._reject_duplicate(self._store.find_course(data.id), "Course", data.id)
            course = Course(data.id, data.name, data.department)
            self._backend.insert_course(course)
            self._store.add_course(course)
        except UmsException as e:
            return self._fail("add course", e)
        logger.info("Course added: %s", course.name)
        return True

    def list_courses(self) -> List[Course]:
        return self._store.courses

    # -- enrollment --------------------------------------------------------------

    def enroll_student(self, student_id: str, course_id: str) -> bool:
        """Enroll a student in a course.

        Protocol: link both sides in memory, persist the enrollment row, and
        on any failure unlink both sides again before reporting it.
        """
        self.last_error = None
        try:
            student = self._require_student(normalize_id(student_id))
            course = self._require_course(normalize_id(course_id))
            if course.is_full(self._capacity):
                raise CapacityError(f"Course {course.id} has reached maximum capacity ({self._capacity})",
                                    error_code="course_full")
            if student.is_enrolled_in(course.id):
                raise ValidationError(f"Student {student.id} already enrolled in {course.id}",
                                      error_code="already_enrolled")
            self._link(student, course)
            try:
                self._backend.insert_enrollment(student.id, course.id)
            except Exception:
                self._unlink(student, course)
                raise
        except UmsException as e:
            return self._fail("enroll student", e)
        logger.info("Student %s enrolled in %s", student.name, course.name)
        return True

    # -- utilities ---------------------------------------------------------------

    def load_demo_data(self) -> bool:
        """Seed a small dataset through the public operations."""
        if self._store.students:
            logger.info("Data already exists. Demo not loaded.")
            return False
        logger.info("Loading demo data")

        self.add_student("S101", "Alice Smith", "Computer Science")
        self.add_student("S102", "Bob Johnson", "Business")

        self.add_teacher("T201", "Dr. Alan Turing", Department.COMPUTER_SCIENCE, "Algorithms")
        self.add_teacher("T202", "Dr. Eva Core", Department.BUSINESS_ADMINISTRATION, "Marketing")

        self.add_course("CS101", "Intro to Programming", Department.COMPUTER_SCIENCE)
        self.add_course("BUS101", "Principles of Management", Department.BUSINESS_ADMINISTRATION)

        self.assign_teacher("T201", "CS101")
        self.assign_teacher("T202", "BUS101")

        self.enroll_student("S101", "CS101")
        self.enroll_student("S102", "BUS101")
        self.enroll_student("S101", "BUS101")
        logger.info("Demo data loaded")
        return True

    def clear_all_data(self) -> None:
        """Empty the backend, then memory. Raises PersistenceError if the backend refuses."""
        self.last_error = None
        try:
            self._backend.clear_all()
        except PersistenceError as e:
            self.last_error = e
            logger.error("Failed to clear database: %s", e.message)
            raise
        self._store.clear()
        logger.info("All data cleared")
