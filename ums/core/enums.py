"""
Enumerations and constants for the University Management System.
"""

from enum import Enum
from typing import Union

from .exceptions import ValidationError


UNIVERSITY_NAME = "University Management System"
MAX_COURSE_CAPACITY = 30
UNASSIGNED_TEACHER = "TBD"


class Department(Enum):
    """Academic departments. The value is the stored/canonical form."""
    COMPUTER_SCIENCE = "COMPUTER_SCIENCE"
    BUSINESS_ADMINISTRATION = "BUSINESS_ADMINISTRATION"
    ELECTRICAL_ENGINEERING = "ELECTRICAL_ENGINEERING"
    ARTS_AND_HUMANITIES = "ARTS_AND_HUMANITIES"
    PHYSICS = "PHYSICS"

    @classmethod
    def parse(cls, value: Union["Department", str]) -> "Department":
        """Parse a canonical department code (case-sensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"Invalid department: {value!r}",
                error_code="invalid_department",
                details={"allowed": cls.codes()},
            )

    @classmethod
    def codes(cls) -> list:
        return [member.value for member in cls]


class BackendState(Enum):
    """Persistence capability negotiated once at startup."""
    RELATIONAL = "relational"
    FLAT_FILE = "flat_file"
    DISABLED = "disabled"
