import os

import pytest

from ums.core.data_model import RecordStore
from ums.core.entities import Course, Student, Teacher
from ums.core.enums import Department
from ums.core.exceptions import PersistenceError
from ums.persistence import FlatFileBackend
from ums.persistence.flat_file import decode_record, encode_record, escape_field
from ums.services import UniversityService


def _read(backend, table):
    with open(os.path.join(backend.base_path, f"{table}.txt"), encoding="utf-8") as f:
        return f.read().splitlines()


@pytest.mark.parametrize("raw, expected", [
    ("plain", "plain"),
    ("a|b", "a b"),
    ("line\nbreak", "line break"),
    ("cr\r\nlf", "cr  lf"),
    (None, ""),
])
def test_escape_field(raw, expected):
    assert escape_field(raw) == expected


def test_encode_never_produces_extra_fields():
    line = encode_record(["S1", "Smith|Jones\n", "Art"])
    assert line == "S1|Smith Jones |Art"
    assert decode_record(line, 3) == ["S1", "Smith Jones ", "Art"]
    assert decode_record(line, 4) is None


def test_initialize_creates_one_file_per_entity(tmp_path):
    backend = FlatFileBackend(str(tmp_path / "store"))
    backend.initialize()
    assert sorted(os.listdir(tmp_path / "store")) == [
        "courses.txt", "enrollments.txt", "students.txt", "teachers.txt",
    ]


def test_initialize_fails_when_directory_cannot_be_created(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    backend = FlatFileBackend(str(blocker / "data"))
    with pytest.raises(PersistenceError):
        backend.initialize()


def test_line_layout(flat_file_backend):
    flat_file_backend.insert_student(Student("S1", "Ann|Lee", "Art"))
    flat_file_backend.insert_teacher(Teacher("T1", "Grace", Department.PHYSICS, "Optics"))
    flat_file_backend.insert_course(Course("C1", "Light", Department.PHYSICS))
    flat_file_backend.insert_enrollment("S1", "C1")
    flat_file_backend.update_teacher_assignment("C1", "T1")

    assert _read(flat_file_backend, "students") == ["S1|Ann Lee|Art"]
    assert _read(flat_file_backend, "teachers") == ["T1|Grace|PHYSICS|Optics"]
    assert _read(flat_file_backend, "courses") == ["C1|Light|PHYSICS|T1"]
    assert _read(flat_file_backend, "enrollments") == ["S1|C1"]


def test_unassigned_course_has_empty_teacher_field(flat_file_backend):
    flat_file_backend.insert_course(Course("C1", "Light", Department.PHYSICS))
    assert _read(flat_file_backend, "courses") == ["C1|Light|PHYSICS|"]


def test_malformed_lines_are_skipped_and_preserved(flat_file_backend):
    flat_file_backend.insert_student(Student("S1", "Ann", "Art"))
    with open(os.path.join(flat_file_backend.base_path, "students.txt"), "a", encoding="utf-8") as f:
        f.write("garbage-without-delimiters\n\n")
    flat_file_backend.insert_student(Student("S2", "Ben", "Math"))

    assert [s.id for s in flat_file_backend.load_all().students] == ["S1", "S2"]

    flat_file_backend.update_student(Student("S2", "Ben", "Physics"))
    assert "garbage-without-delimiters" in _read(flat_file_backend, "students")


def test_unknown_department_rows_are_skipped(flat_file_backend):
    with open(os.path.join(flat_file_backend.base_path, "teachers.txt"), "a", encoding="utf-8") as f:
        f.write("T9|Nobody|ALCHEMY|Gold\n")
    flat_file_backend.insert_teacher(Teacher("T1", "Grace", Department.PHYSICS, "Optics"))
    assert [t.id for t in flat_file_backend.load_all().teachers] == ["T1"]


def test_enrollment_purge_failure_keeps_student(flat_file_backend, monkeypatch):
    flat_file_backend.insert_student(Student("S1", "Ann", "Art"))
    flat_file_backend.insert_course(Course("C1", "Light", Department.PHYSICS))
    flat_file_backend.insert_enrollment("S1", "C1")

    real_replace = flat_file_backend._replace_file

    def refuse_enrollments(table, lines):
        if table == "ENROLLMENTS":
            raise PersistenceError("Failed to rewrite enrollments.txt: disk full")
        return real_replace(table, lines)

    monkeypatch.setattr(flat_file_backend, "_replace_file", refuse_enrollments)
    with pytest.raises(PersistenceError):
        flat_file_backend.delete_student("S1")

    assert _read(flat_file_backend, "students") == ["S1|Ann|Art"]
    assert _read(flat_file_backend, "enrollments") == ["S1|C1"]


def test_rewrite_leaves_no_temporary_files(flat_file_backend):
    flat_file_backend.insert_student(Student("S1", "Ann", "Art"))
    flat_file_backend.update_student(Student("S1", "Ann", "History"))
    flat_file_backend.delete_student("S1")
    assert not [name for name in os.listdir(flat_file_backend.base_path) if name.endswith(".tmp")]


def test_rejects_unusable_delimiter(tmp_path):
    with pytest.raises(ValueError):
        FlatFileBackend(str(tmp_path), delimiter="\n")


def test_undecodable_lines_are_skipped_on_load(flat_file_backend):
    path = os.path.join(flat_file_backend.base_path, "students.txt")
    with open(path, "wb") as f:
        f.write(b"S1|Ann|Art\nS2|\xff\xfe bad|Math\n")

    service = UniversityService(RecordStore(), flat_file_backend)
    service.start()
    assert [s.id for s in service.list_students()] == ["S1"]

    assert service.update_student_major("S1", "History")
    with open(path, "rb") as f:
        assert f.read() == b"S1|Ann|History\nS2|\xff\xfe bad|Math\n"


def test_undecodable_enrollment_line_does_not_block_writes(flat_file_backend):
    flat_file_backend.insert_student(Student("S1", "Ann", "Art"))
    flat_file_backend.insert_course(Course("C1", "Light", Department.PHYSICS))
    with open(os.path.join(flat_file_backend.base_path, "enrollments.txt"), "wb") as f:
        f.write(b"\xff|C9\n")

    service = UniversityService(RecordStore(), flat_file_backend)
    service.start()
    assert service.enroll_student("S1", "C1")
    assert service.remove_student("S1")
    with open(os.path.join(flat_file_backend.base_path, "enrollments.txt"), "rb") as f:
        assert f.read() == b"\xff|C9\n"
