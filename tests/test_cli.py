"""
Scripted sessions through the menu shell.
"""

import builtins

from ums.cli import UniversityCli
from ums.main import main


def _scripted(lines):
    remaining = list(lines)

    def _input(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)
    return _input


def _run(service, lines):
    output = []
    UniversityCli(service, input_func=_scripted(lines), output=output.append).run()
    return output


def test_demo_enroll_and_add_teacher(make_service):
    service = make_service()
    output = _run(service, [
        "1",                                        # demo data
        "2", "2", "S102", " CS101 [COMPUTER_SCIENCE] ",  # enroll
        "3", "1", "T9", "Dr. Ada", "physics", "Quantum",  # add teacher, lower-case department
        "abc",                                      # not a number
        "0",
    ])
    assert "Demo data loaded." in output
    assert "Student enrolled successfully!" in output
    assert "Teacher added successfully!" in output
    assert "Please enter a valid number." in output
    assert output[-1] == "System shut down."
    assert service.store.find_course("CS101").enrolled_student_ids == ["S101", "S102"]
    assert service.store.find_teacher("T9").department.value == "PHYSICS"


def test_failures_show_error_category(make_service):
    service = make_service()
    output = _run(service, [
        "2", "1", "S1", "Ann", "Art",
        "2", "1", "s1", "Other", "Art",
        "4", "1", "C1", "Light", "CHEMISTRY",
        "0",
    ])
    assert "Student added successfully!" in output
    assert any(line.startswith("Error [ValidationError]: Student ID s1 already exists") for line in output)
    assert any(line.startswith("Error [ValidationError]: Invalid department") for line in output)


def test_listing_and_clear(make_service):
    service = make_service()
    service.load_demo_data()
    output = _run(service, ["5", "1", "9", "no", "9", "YES", "5", "3"])
    assert "ID: S101, Name: Alice Smith, Role: Student" in output
    assert "Clear cancelled." in output
    assert "Database cleared successfully." in output
    assert "  (No entries found in cache)" in output
    assert service.store.is_empty()
    assert output[-1] == "System shut down."


def test_main_in_memory(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(builtins, "input", _scripted(["5", "1", "0"]))
    assert main(["--no-persistence", "--demo", "--log-level", "warning"]) == 0
    out = capsys.readouterr().out
    assert "Persistence initialized: disabled" in out
    assert "ID: S102, Name: Bob Johnson, Role: Student" in out
    assert list(tmp_path.iterdir()) == []


def test_main_rejects_bad_config(tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{")
    assert main(["--config", str(bad)]) == 1
    assert "Failed to initialize the system" in capsys.readouterr().err
