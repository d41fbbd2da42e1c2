"""
Flat-file backend: one delimited text file per entity type.
"""

import logging
import os
import tempfile
from typing import Callable, Dict, List, Optional, Sequence

from ..core.entities import Course, Student, Teacher
from ..core.enums import BackendState, UNASSIGNED_TEACHER
from ..core.exceptions import PersistenceError
from .backends import CLEAR_ORDER, LoadedData, PersistenceBackend, build_snapshot

logger = logging.getLogger(__name__)

DELIMITER = "|"
PLACEHOLDER = " "

# Field order of every file; the first field (or the pair, for enrollments) is the key.
LAYOUT: Dict[str, Sequence[str]] = {
    "STUDENTS": ("id", "name", "major"),
    "TEACHERS": ("id", "name", "department", "subject"),
    "COURSES": ("id", "name", "department", "teacher_id"),
    "ENROLLMENTS": ("student_id", "course_id"),
}

KEY_WIDTH = {"STUDENTS": 1, "TEACHERS": 1, "COURSES": 1, "ENROLLMENTS": 2}


def escape_field(value: Optional[str], delimiter: str = DELIMITER) -> str:
    """Replace the delimiter and line breaks with a placeholder (lossy)."""
    if value is None:
        return ""
    text = str(value)
    for char in (delimiter, "\r", "\n"):
        text = text.replace(char, PLACEHOLDER)
    return text


def encode_record(values: Sequence[Optional[str]], delimiter: str = DELIMITER) -> str:
    return delimiter.join(escape_field(value, delimiter) for value in values)


def undecodable(line: str) -> bool:
    """True when a line read with surrogateescape held bytes that are not UTF-8."""
    try:
        line.encode("utf-8")
    except UnicodeEncodeError:
        return True
    return False


def decode_record(line: str, width: int, delimiter: str = DELIMITER) -> Optional[List[str]]:
    """Split a line into fields; None when the field count does not match."""
    fields = line.rstrip("\r\n").split(delimiter)
    if len(fields) != width:
        return None
    return fields


class FlatFileBackend(PersistenceBackend):
    """Backend that keeps students, teachers, courses and enrollments in text files.

    Updates and deletes read the whole file, filter or replace the matching
    line and swap a rewritten copy into place. Concurrent external edits are
    not guarded against.
    """

    def __init__(self, base_path: str = "ums_data", delimiter: str = DELIMITER):
        if delimiter in ("", "\r", "\n", PLACEHOLDER):
            raise ValueError(f"Unusable delimiter: {delimiter!r}")
        self._base_path = base_path
        self._delimiter = delimiter

    @property
    def state(self) -> BackendState:
        return BackendState.FLAT_FILE

    @property
    def base_path(self) -> str:
        return self._base_path

    def _get_path(self, table: str) -> str:
        return os.path.join(self._base_path, f"{table.lower()}.txt")

    def initialize(self) -> BackendState:
        try:
            os.makedirs(self._base_path, exist_ok=True)
            for table in LAYOUT:
                with open(self._get_path(table), "a", encoding="utf-8"):
                    pass
        except OSError as e:
            raise PersistenceError(f"Cannot provision data directory {self._base_path}: {e}") from e
        logger.info("Flat-file store ready in %s", self._base_path)
        return self.state

    # -- low level -----------------------------------------------------------

    def _read_lines(self, table: str) -> List[str]:
        path = self._get_path(table)
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
                return [line.rstrip("\n") for line in f if line.strip()]
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def _read_rows(self, table: str) -> List[Dict[str, str]]:
        columns = LAYOUT[table]
        rows = []
        for line_num, line in enumerate(self._read_lines(table), 1):
            fields = decode_record(line, len(columns), self._delimiter)
            if fields is None or undecodable(line):
                logger.warning("Skipping malformed line %d in %s", line_num, self._get_path(table))
                continue
            rows.append(dict(zip(columns, fields)))
        return rows

    def _key(self, table: str, fields: Sequence[str]) -> tuple:
        return tuple(fields[:KEY_WIDTH[table]])

    def _append(self, table: str, values: Sequence[Optional[str]]) -> None:
        line = encode_record(values, self._delimiter)
        width = len(LAYOUT[table])
        key = self._key(table, decode_record(line, width, self._delimiter))
        for existing in self._read_lines(table):
            fields = decode_record(existing, width, self._delimiter)
            if fields is not None and self._key(table, fields) == key:
                raise PersistenceError(f"Duplicate key {key} in {table.lower()}",
                                       error_code="duplicate_key")
        path = self._get_path(table)
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except (OSError, UnicodeError) as e:
            raise PersistenceError(f"Failed to append to {path}: {e}") from e

    def _rewrite(self, table: str, transform: Callable[[List[str]], Optional[List[str]]]) -> int:
        """Rewrite a file line by line.

        ``transform`` receives the decoded fields of each well-formed line and
        returns replacement fields, or None to drop the line. Malformed lines,
        including lines that are not valid UTF-8, are kept verbatim. Returns
        the number of lines changed or dropped.
        """
        width = len(LAYOUT[table])
        kept: List[str] = []
        changed = 0
        for line in self._read_lines(table):
            fields = decode_record(line, width, self._delimiter)
            if fields is None or undecodable(line):
                kept.append(line)
                continue
            replacement = transform(fields)
            if replacement is None:
                changed += 1
                continue
            if replacement != fields:
                changed += 1
            kept.append(encode_record(replacement, self._delimiter))
        self._replace_file(table, kept)
        return changed

    def _replace_file(self, table: str, lines: List[str]) -> None:
        path = self._get_path(table)
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile("w", encoding="utf-8", errors="surrogateescape",
                                             dir=self._base_path,
                                             prefix=f".{table.lower()}.", suffix=".tmp",
                                             delete=False) as tmp:
                tmp_path = tmp.name
                for line in lines:
                    tmp.write(line + "\n")
            os.replace(tmp_path, path)
        except (OSError, UnicodeError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Failed to rewrite {path}: {e}") from e

    def _guarded(self, action: str, func: Callable[[], object]) -> None:
        try:
            func()
        except PersistenceError as e:
            logger.error("Failed to %s: %s", action, e.message)
            raise PersistenceError(f"Failed to {action}: {e.message}",
                                   error_code=e.error_code or "write_failed") from e

    # -- contract ------------------------------------------------------------

    def load_all(self) -> LoadedData:
        return build_snapshot(
            self._read_rows("STUDENTS"),
            self._read_rows("TEACHERS"),
            self._read_rows("COURSES"),
            self._read_rows("ENROLLMENTS"),
        )

    def insert_student(self, student: Student) -> None:
        self._guarded("insert student", lambda: self._append(
            "STUDENTS", (student.id, student.name, student.major)))

    def insert_teacher(self, teacher: Teacher) -> None:
        self._guarded("insert teacher", lambda: self._append(
            "TEACHERS", (teacher.id, teacher.name, teacher.department.value, teacher.subject)))

    def insert_course(self, course: Course) -> None:
        row = course.to_dict()
        self._guarded("insert course", lambda: self._append(
            "COURSES", (row["id"], row["name"], row["department"], row["teacher_id"])))

    def insert_enrollment(self, student_id: str, course_id: str) -> None:
        self._guarded("insert enrollment", lambda: self._append(
            "ENROLLMENTS", (student_id, course_id)))

    def update_student(self, student: Student) -> None:
        replacement = [escape_field(v, self._delimiter)
                       for v in (student.id, student.name, student.major)]

        def transform(fields):
            return replacement if fields[0] == replacement[0] else fields

        self._guarded("update student", lambda: self._rewrite("STUDENTS", transform))

    def update_teacher_assignment(self, course_id: str, teacher_id: Optional[str]) -> None:
        stored = "" if teacher_id in (None, UNASSIGNED_TEACHER) else escape_field(teacher_id, self._delimiter)
        key = escape_field(course_id, self._delimiter)

        def transform(fields):
            if fields[0] != key:
                return fields
            return fields[:3] + [stored]

        self._guarded("update teacher assignment", lambda: self._rewrite("COURSES", transform))

    def delete_student(self, student_id: str) -> None:
        key = escape_field(student_id, self._delimiter)
        # Enrollment rows go first; if that rewrite fails the student row stays.
        self._guarded("delete student enrollments", lambda: self._rewrite(
            "ENROLLMENTS", lambda fields: None if fields[0] == key else fields))
        self._guarded("delete student", lambda: self._rewrite(
            "STUDENTS", lambda fields: None if fields[0] == key else fields))

    def clear_all(self) -> None:
        for table in CLEAR_ORDER:
            self._guarded(f"clear {table.lower()}", lambda t=table: self._replace_file(t, []))
        logger.info("Flat-file tables cleared")
