"""
Pydantic input models validated at the service boundary.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .enums import Department
from .exceptions import ValidationError


# Characters the flat-file store replaces with a blank placeholder.
RESERVED_CHARACTERS = "|\r\n"


class _InputModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    @field_validator("*")
    @classmethod
    def _require_storable_text(cls, value):
        if isinstance(value, str):
            remaining = value
            for char in RESERVED_CHARACTERS:
                remaining = remaining.replace(char, "")
            if not remaining.strip():
                raise ValueError("must contain text other than '|' and line breaks")
        return value


class StudentCreate(_InputModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    major: str = Field("Undeclared", min_length=1, max_length=200)


class TeacherCreate(_InputModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    department: Department
    subject: str = Field("General", min_length=1, max_length=200)


class CourseCreate(_InputModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    department: Department


class MajorUpdate(_InputModel):
    major: str = Field(..., min_length=1, max_length=200)


def validate_input(model_cls, **values):
    """Build an input model, translating pydantic errors into ValidationError."""
    try:
        return model_cls(**values)
    except PydanticValidationError as e:
        problems = []
        for error in e.errors():
            field = ".".join(str(part) for part in error.get("loc", ()))
            problems.append(f"{field}: {error.get('msg')}")
        raise ValidationError(
            "Invalid input: " + "; ".join(problems),
            error_code="invalid_input",
            details={"errors": problems},
        )
