"""
Interactive menu shell.

The shell only collects and trims input, calls the university service and
prints the outcome; all rules live in the service.
"""

from typing import Callable, List, Optional

from .core.enums import Department, UNIVERSITY_NAME
from .core.exceptions import PersistenceError
from .services.university_service import UniversityService

DEPARTMENT_HELP = "Available Departments: " + ", ".join(Department.codes())


class UniversityCli:
    """Menu-driven front end over a UniversityService."""

    def __init__(self, service: UniversityService,
                 input_func: Optional[Callable[[str], str]] = None,
                 output: Optional[Callable[[str], None]] = None):
        self._service = service
        self._input = input_func or input
        self._output = output or print

    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def _choice(self, title: str, options: List[str]) -> Optional[int]:
        self._output(f"\n=== {title} ===")
        for option in options:
            self._output(option)
        raw = self._ask("\nEnter your choice: ")
        try:
            return int(raw)
        except ValueError:
            self._output("Please enter a valid number.")
            return None

    def _report(self, ok: bool, success_message: str) -> None:
        if ok:
            self._output(success_message)
            return
        error = self._service.last_error
        if error is not None:
            self._output(f"Error [{type(error).__name__}]: {error.message}")
        else:
            self._output("Operation failed.")

    def _print_entities(self, title: str, entities) -> None:
        self._output(f"\n--- {title} ---")
        if not entities:
            self._output("  (No entries found in cache)")
        for entity in entities:
            for line in entity.describe().splitlines():
                self._output(line)
            self._output("")

    def banner(self) -> None:
        state = self._service.persistence_state
        self._output(f"--- {UNIVERSITY_NAME} (UMS) ---")
        self._output(f"Persistence: {state.value if state else 'unknown'}. Data saves automatically.")

    def run(self) -> None:
        self.banner()
        try:
            while self._main_menu():
                pass
        except EOFError:
            pass
        self._output("System shut down.")

    def _main_menu(self) -> bool:
        choice = self._choice("University Management System Menu", [
            "1. Load Demo Data",
            "2. Student Operations",
            "3. Teacher Operations",
            "4. Course Operations",
            "5. View Lists",
            "9. Clear All Data",
            "0. Exit",
        ])
        if choice == 0:
            return False
        if choice == 1:
            if not self._service.load_demo_data():
                self._output("Data already exists. Demo not loaded.")
            else:
                self._output("Demo data loaded.")
        elif choice == 2:
            self._student_menu()
        elif choice == 3:
            self._teacher_menu()
        elif choice == 4:
            self._course_menu()
        elif choice == 5:
            self._list_menu()
        elif choice == 9:
            self._clear_data()
        elif choice is not None:
            self._output("Invalid choice.")
        return True

    def _student_menu(self) -> None:
        choice = self._choice("Student Operations", [
            "1. Add New Student",
            "2. Enroll Student in Course",
            "3. Update Student Major",
            "4. Remove Student",
            "0. Return to Main Menu",
        ])
        if choice == 1:
            student_id = self._ask("Enter Student ID: ")
            name = self._ask("Enter Student Name: ")
            major = self._ask("Enter Major: ")
            self._report(self._service.add_student(student_id, name, major), "Student added successfully!")
        elif choice == 2:
            student_id = self._ask("Enter Student ID: ")
            self._print_entities("Available Courses", self._service.list_courses())
            course_id = self._ask("Enter Course ID (or 0 to cancel): ")
            if course_id != "0":
                self._report(self._service.enroll_student(student_id, course_id),
                             "Student enrolled successfully!")
        elif choice == 3:
            student_id = self._ask("Enter Student ID: ")
            major = self._ask("Enter New Major: ")
            self._report(self._service.update_student_major(student_id, major),
                         "Student major updated successfully!")
        elif choice == 4:
            student_id = self._ask("Enter Student ID: ")
            self._report(self._service.remove_student(student_id), "Student removed successfully!")
        elif choice not in (0, None):
            self._output("Invalid choice.")

    def _teacher_menu(self) -> None:
        choice = self._choice("Teacher Operations", [
            "1. Add New Teacher",
            "2. Assign Teacher to Course",
            "0. Return to Main Menu",
            DEPARTMENT_HELP,
        ])
        if choice == 1:
            teacher_id = self._ask("Enter Teacher ID: ")
            name = self._ask("Enter Teacher Name: ")
            department = self._ask("Enter Department Code (from list above): ").upper()
            subject = self._ask("Enter Subject: ")
            self._report(self._service.add_teacher(teacher_id, name, department, subject),
                         "Teacher added successfully!")
        elif choice == 2:
            teacher_id = self._ask("Enter Teacher ID: ")
            self._print_entities("Available Courses", self._service.list_courses())
            course_id = self._ask("Enter Course ID (or 0 to cancel): ")
            if course_id != "0":
                self._report(self._service.assign_teacher(teacher_id, course_id),
                             "Teacher assigned successfully!")
        elif choice not in (0, None):
            self._output("Invalid choice.")

    def _course_menu(self) -> None:
        choice = self._choice("Course Operations", [
            "1. Add New Course",
            "2. View All Courses",
            "0. Return to Main Menu",
            DEPARTMENT_HELP,
        ])
        if choice == 1:
            course_id = self._ask("Enter Course ID: ")
            name = self._ask("Enter Course Name: ")
            department = self._ask("Enter Department Code (from list above): ").upper()
            self._report(self._service.add_course(course_id, name, department),
                         "Course added successfully!")
        elif choice == 2:
            self._print_entities("All Courses", self._service.list_courses())
        elif choice not in (0, None):
            self._output("Invalid choice.")

    def _list_menu(self) -> None:
        choice = self._choice("View Lists", [
            "1. List all Students",
            "2. List all Teachers",
            "3. List all Courses",
            "0. Return to Main Menu",
        ])
        if choice == 1:
            self._print_entities("All Students", self._service.list_students())
        elif choice == 2:
            self._print_entities("All Teachers", self._service.list_teachers())
        elif choice == 3:
            self._print_entities("All Courses", self._service.list_courses())
        elif choice not in (0, None):
            self._output("Invalid choice.")

    def _clear_data(self) -> None:
        confirm = self._ask("Type YES to delete all data: ")
        if confirm != "YES":
            self._output("Clear cancelled.")
            return
        try:
            self._service.clear_all_data()
        except PersistenceError as e:
            self._output(f"Error [{type(e).__name__}]: {e.message}")
            return
        self._output("Database cleared successfully.")
