"""
Services module containing the university business operations.
"""

from .university_service import UniversityService, normalize_id

__all__ = [
    "UniversityService",
    "normalize_id",
]
