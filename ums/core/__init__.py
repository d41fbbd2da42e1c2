"""
Core module containing the domain model, record store and error taxonomy.
"""

from .entities import *
from .exceptions import *
from .enums import *
from .data_model import RecordStore

__all__ = [
    # Entities
    "AbstractEntity",
    "Person",
    "Student",
    "Teacher",
    "Course",
    "RecordStore",

    # Enums and constants
    "Department",
    "BackendState",
    "UNIVERSITY_NAME",
    "MAX_COURSE_CAPACITY",
    "UNASSIGNED_TEACHER",

    # Exceptions
    "UmsException",
    "ValidationError",
    "NotFoundError",
    "CapacityError",
    "PersistenceError",
    "BackendUnavailableError",
    "ConfigurationError",
]
