"""
Core entities for the University Management System.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .enums import Department, UNASSIGNED_TEACHER


def same_id(left: Optional[str], right: Optional[str]) -> bool:
    """Case-insensitive identifier comparison."""
    if left is None or right is None:
        return False
    return left.strip().lower() == right.strip().lower()


class AbstractEntity(ABC):
    """Base abstract entity identified by a caller-supplied key."""

    def __init__(self, entity_id: str):
        self._id = entity_id

    @property
    def id(self) -> str:
        """Get the entity ID."""
        return self._id

    def matches_id(self, entity_id: Optional[str]) -> bool:
        """Check whether this entity answers to the given identifier."""
        return same_id(self._id, entity_id)

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to its persisted fields."""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Multi-line text used by listings."""
        pass

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if other is None or type(self) is not type(other):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash((self.__class__.__name__, self._id))

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id!r})"


class Person(AbstractEntity):
    """Abstract base class for all persons in the system."""

    def __init__(self, person_id: str, name: str):
        super().__init__(person_id)
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def role(self) -> str:
        """Human readable role name."""
        pass

    def describe(self) -> str:
        return f"ID: {self._id}, Name: {self._name}, Role: {self.role()}"


class Student(Person):
    """Student entity holding its enrolled course IDs."""

    def __init__(self, student_id: str, name: str, major: str = "Undeclared"):
        super().__init__(student_id, name)
        self._major = major
        self._enrolled_course_ids: List[str] = []

    def role(self) -> str:
        return "Student"

    @property
    def major(self) -> str:
        return self._major

    @major.setter
    def major(self, major: str) -> None:
        self._major = major

    @property
    def enrolled_course_ids(self) -> List[str]:
        """Enrolled course IDs in enrollment order."""
        return list(self._enrolled_course_ids)

    def is_enrolled_in(self, course_id: str) -> bool:
        return any(same_id(existing, course_id) for existing in self._enrolled_course_ids)

    def enroll(self, course_id: str) -> None:
        """Add a course; enrolling twice keeps a single entry."""
        if not self.is_enrolled_in(course_id):
            self._enrolled_course_ids.append(course_id)

    def unenroll(self, course_id: str) -> None:
        self._enrolled_course_ids = [
            existing for existing in self._enrolled_course_ids
            if not same_id(existing, course_id)
        ]

    drop = unenroll

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self._id,
            'name': self._name,
            'major': self._major,
        }

    def describe(self) -> str:
        return "\n".join([
            super().describe(),
            f"  Major: {self._major}",
            f"  Enrolled Courses: {len(self._enrolled_course_ids)}",
        ])


class Teacher(Person):
    """Teacher entity belonging to one department."""

    def __init__(self, teacher_id: str, name: str, department: Department, subject: str = "General"):
        super().__init__(teacher_id, name)
        self._department = department
        self._subject = subject

    def role(self) -> str:
        return "Teacher"

    @property
    def department(self) -> Department:
        return self._department

    @property
    def subject(self) -> str:
        return self._subject

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self._id,
            'name': self._name,
            'department': self._department.value,
            'subject': self._subject,
        }

    def describe(self) -> str:
        return "\n".join([
            super().describe(),
            f"  Department: {self._department.value}",
            f"  Specialty: {self._subject}",
        ])


class Course(AbstractEntity):
    """Course entity with an optional teacher and its enrolled student IDs."""

    def __init__(self, course_id: str, name: str, department: Department):
        super().__init__(course_id)
        self._name = name
        self._department = department
        self._teacher_id = UNASSIGNED_TEACHER
        self._enrolled_student_ids: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def department(self) -> Department:
        return self._department

    @property
    def teacher_id(self) -> str:
        """Assigned teacher ID, or "TBD" when unassigned."""
        return self._teacher_id

    @property
    def has_teacher(self) -> bool:
        return self._teacher_id != UNASSIGNED_TEACHER

    @property
    def enrolled_student_ids(self) -> List[str]:
        return list(self._enrolled_student_ids)

    @property
    def enrolled_count(self) -> int:
        return len(self._enrolled_student_ids)

    def is_full(self, capacity: int) -> bool:
        return len(self._enrolled_student_ids) >= capacity

    def has_student(self, student_id: str) -> bool:
        return any(same_id(existing, student_id) for existing in self._enrolled_student_ids)

    def assign_teacher(self, teacher_id: Optional[str]) -> None:
        self._teacher_id = teacher_id if teacher_id else UNASSIGNED_TEACHER

    def add_student(self, student_id: str) -> None:
        if not self.has_student(student_id):
            self._enrolled_student_ids.append(student_id)

    def remove_student(self, student_id: str) -> None:
        self._enrolled_student_ids = [
            existing for existing in self._enrolled_student_ids
            if not same_id(existing, student_id)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self._id,
            'name': self._name,
            'department': self._department.value,
            'teacher_id': self._teacher_id if self.has_teacher else None,
        }

    def describe(self) -> str:
        return "\n".join([
            f"Course ID: {self._id} [{self._department.value}]",
            f"  Name: {self._name}",
            f"  Teacher ID: {self._teacher_id}",
            f"  Enrollment: {len(self._enrolled_student_ids)} student(s)",
        ])
