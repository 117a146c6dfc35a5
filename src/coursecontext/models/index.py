from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import AliasChoices, BaseModel, Field, field_validator


class CourseMeta(BaseModel):
    """Index metadata for a single course."""

    aliases: list[str] = []
    syllabus_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("syllabus_url", "syllabusUrl", "url"),
    )

    @field_validator("aliases")
    @classmethod
    def drop_blank_aliases(cls, v: list[str]) -> list[str]:
        # Dedupe while keeping document order
        seen: dict[str, None] = {}
        for alias in v:
            alias = alias.strip()
            if alias:
                seen.setdefault(alias, None)
        return list(seen)


@dataclass
class CourseIndex:
    """Ordered mapping of course name → CourseMeta.

    Iteration order is the order of the source document; course detection
    relies on it for tie-breaking.
    """

    courses: dict[str, CourseMeta] = field(default_factory=dict)

    def names(self) -> list[str]:
        return list(self.courses)

    def get(self, name: str) -> CourseMeta | None:
        return self.courses.get(name)

    def __len__(self) -> int:
        return len(self.courses)
