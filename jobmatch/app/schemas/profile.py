from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

PROFILE_STRING_FIELDS = ("full_name", "email", "phone_number")
PROFILE_LIST_FIELDS = (
    "skills",
    "education",
    "experience",
    "projects",
    "certifications",
    "achievements",
    "areas_of_interest",
)


class ParsedProfile(BaseModel):
    """
    Structured view of a resume. Every field is always present; unknown values
    are empty strings / empty lists, never null.
    List entries are strings or objects (e.g. {"degree": ..., "institution": ...}).
    """

    full_name: str = ""
    email: str = ""
    phone_number: str = ""
    skills: list[str | dict[str, Any]] = Field(default_factory=list)
    education: list[str | dict[str, Any]] = Field(default_factory=list)
    experience: list[str | dict[str, Any]] = Field(default_factory=list)
    projects: list[str | dict[str, Any]] = Field(default_factory=list)
    certifications: list[str | dict[str, Any]] = Field(default_factory=list)
    achievements: list[str | dict[str, Any]] = Field(default_factory=list)
    areas_of_interest: list[str | dict[str, Any]] = Field(default_factory=list)

    @field_validator(*PROFILE_STRING_FIELDS, mode="before")
    @classmethod
    def _coerce_string(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (list, tuple)):
            return ", ".join(str(x).strip() for x in v if x is not None and str(x).strip())
        if isinstance(v, dict):
            return ""
        return str(v).strip()

    @field_validator(*PROFILE_LIST_FIELDS, mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> list:
        if v is None or v == "":
            return []
        if isinstance(v, (str, dict)):
            v = [v]
        if not isinstance(v, (list, tuple)):
            return [str(v)]
        out: list = []
        for item in v:
            if item is None:
                continue
            if isinstance(item, dict):
                out.append(item)
                continue
            s = str(item).strip()
            if s:
                out.append(s)
        return out


class ProfileResponse(BaseModel):
    success: bool = True
    profile: ParsedProfile
    source: Literal["ai", "fallback"]
    notice: str | None = None
    warnings: list[str] = Field(default_factory=list)


class SaveProfileRequest(BaseModel):
    profile: dict[str, Any] | None = None
