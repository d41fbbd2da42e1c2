"""
In-memory record store holding the canonical entity collections.
"""

from typing import Dict, Iterable, List, Optional, TypeVar

from .entities import AbstractEntity, Course, Student, Teacher

T = TypeVar('T', bound=AbstractEntity)


def _find(collection: Iterable[T], entity_id: Optional[str]) -> Optional[T]:
    if entity_id is None or not entity_id.strip():
        return None
    for entity in collection:
        if entity.matches_id(entity_id):
            return entity
    return None


class RecordStore:
    """Canonical in-memory collections of students, teachers and courses.

    Lookups are case-insensitive. The store performs no validation; the
    university service is its only writer.
    """

    def __init__(self):
        self._students: List[Student] = []
        self._teachers: List[Teacher] = []
        self._courses: List[Course] = []

    @property
    def students(self) -> List[Student]:
        return list(self._students)

    @property
    def teachers(self) -> List[Teacher]:
        return list(self._teachers)

    @property
    def courses(self) -> List[Course]:
        return list(self._courses)

    def find_student(self, student_id: Optional[str]) -> Optional[Student]:
        return _find(self._students, student_id)

    def find_teacher(self, teacher_id: Optional[str]) -> Optional[Teacher]:
        return _find(self._teachers, teacher_id)

    def find_course(self, course_id: Optional[str]) -> Optional[Course]:
        return _find(self._courses, course_id)

    def add_student(self, student: Student) -> None:
        self._students.append(student)

    def add_teacher(self, teacher: Teacher) -> None:
        self._teachers.append(teacher)

    def add_course(self, course: Course) -> None:
        self._courses.append(course)

    def remove_student(self, student: Student) -> bool:
        return self._remove(self._students, student)

    def remove_teacher(self, teacher: Teacher) -> bool:
        return self._remove(self._teachers, teacher)

    def remove_course(self, course: Course) -> bool:
        return self._remove(self._courses, course)

    @staticmethod
    def _remove(collection: List[T], entity: T) -> bool:
        for index, existing in enumerate(collection):
            if existing is entity:
                del collection[index]
                return True
        return False

    def load(self, snapshot) -> None:
        """Replace the contents with a snapshot returned by a backend's load_all()."""
        self._students = list(snapshot.students)
        self._teachers = list(snapshot.teachers)
        self._courses = list(snapshot.courses)

    def clear(self) -> None:
        self._students.clear()
        self._teachers.clear()
        self._courses.clear()

    def is_empty(self) -> bool:
        return not (self._students or self._teachers or self._courses)

    def counts(self) -> Dict[str, int]:
        return {
            'students': len(self._students),
            'teachers': len(self._teachers),
            'courses': len(self._courses),
        }
