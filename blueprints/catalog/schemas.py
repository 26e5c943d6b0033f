from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, Field

from models import ReferenceCurriculum, ReferenceSubject, ReferenceWeek


# ---------- Input ----------
class ReferenceSubjectIn(BaseModel):
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=20)
    school_types: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class ReferenceWeekIn(BaseModel):
    week_number: int = Field(ge=1)
    topic: str = Field(min_length=1, max_length=500)
    sub_topics: List[str] = Field(default_factory=list)
    objectives: List[str] = Field(default_factory=list)
    activities: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)
    assessment: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=100)


class ReferenceTemplateIn(BaseModel):
    subject_code: str = Field(min_length=1)
    class_level: str = Field(min_length=1, max_length=20)
    term: int = Field(ge=1, le=3)
    description: Optional[str] = None
    weeks: List[ReferenceWeekIn] = Field(default_factory=list)


# ---------- Output ----------
@dataclass
class ReferenceSubjectOut:
    id: str
    code: str
    name: str
    category: Optional[str]
    school_types: List[str]
    description: Optional[str]

    @classmethod
    def from_model(cls, s: ReferenceSubject) -> "ReferenceSubjectOut":
        return cls(id=s.id, code=s.code, name=s.name, category=s.category,
                   school_types=list(s.school_types or []), description=s.description)


@dataclass
class ReferenceWeekOut:
    week_number: int
    topic: str
    sub_topics: List[str]
    objectives: List[str]
    activities: List[str]
    resources: List[str]
    assessment: Optional[str]
    duration: Optional[str]

    @classmethod
    def from_model(cls, w: ReferenceWeek) -> "ReferenceWeekOut":
        return cls(
            week_number=w.week_number, topic=w.topic,
            sub_topics=list(w.sub_topics or []), objectives=list(w.objectives or []),
            activities=list(w.activities or []), resources=list(w.resources or []),
            assessment=w.assessment, duration=w.duration,
        )


@dataclass
class ReferenceTemplateOut:
    id: str
    subject: ReferenceSubjectOut
    class_level: str
    term: int
    description: Optional[str]
    weeks: List[ReferenceWeekOut] = field(default_factory=list)

    @classmethod
    def from_model(cls, t: ReferenceCurriculum, *, with_weeks: bool = True) -> "ReferenceTemplateOut":
        return cls(
            id=t.id,
            subject=ReferenceSubjectOut.from_model(t.subject),
            class_level=t.class_level,
            term=t.term,
            description=t.description,
            weeks=[ReferenceWeekOut.from_model(w) for w in t.weeks] if with_weeks else [],
        )
