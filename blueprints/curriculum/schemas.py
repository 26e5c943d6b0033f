from __future__ import annotations
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from models import Curriculum, CurriculumItem


# ---------- Input ----------
class ItemIn(BaseModel):
    # week: старое имя поля, приводится к week_number здесь, дальше по коду только week_number
    week_number: Optional[int] = Field(None, ge=1)
    topic: str = Field(min_length=1, max_length=500)
    sub_topics: List[str] = Field(default_factory=list)
    objectives: List[str] = Field(default_factory=list)
    activities: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)
    assessment: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _legacy_week(cls, data: Any):
        if isinstance(data, dict) and data.get("week_number") is None and data.get("week") is not None:
            data = {**data, "week_number": data["week"]}
        return data

    @field_validator("topic")
    @classmethod
    def _strip_topic(cls, v: str):
        if not v.strip():
            raise ValueError("topic_required")
        return v.strip()


class CurriculumCreateIn(BaseModel):
    class_id: str = Field(min_length=1)
    subject_id: Optional[str] = None
    subject: Optional[str] = Field(None, max_length=255)  # legacy: предмет строкой
    academic_year: Optional[str] = Field(None, max_length=20)
    term_id: str = Field(min_length=1)
    reference_curriculum_id: Optional[str] = None
    items: List[ItemIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _subject_required(self):
        if not self.subject_id and not (self.subject and self.subject.strip()):
            raise ValueError("subject_id or subject is required")
        return self


class GenerateIn(BaseModel):
    class_level_id: str = Field(min_length=1)
    subject_id: str = Field(min_length=1)
    term_id: str = Field(min_length=1)
    teacher_id: Optional[str] = None


class BulkGenerateIn(BaseModel):
    class_level_id: str = Field(min_length=1)
    term_id: str = Field(min_length=1)
    subject_ids: List[str] = Field(min_length=1)
    teacher_id: Optional[str] = None


class CurriculumUpdateIn(BaseModel):
    academic_year: Optional[str] = Field(None, max_length=20)
    term_id: Optional[str] = None
    items: Optional[List[ItemIn]] = None


class RejectIn(BaseModel):
    reason: str = ""


class WeekNotesIn(BaseModel):
    notes: Optional[str] = Field(None, max_length=5000)


class SkipIn(BaseModel):
    reason: str = ""


# ---------- Output ----------
def _iso(v: Optional[datetime]) -> Optional[str]:
    return v.isoformat() if v else None


@dataclass
class CurriculumItemOut:
    id: str
    curriculum_id: str
    week_number: int
    topic: str
    sub_topics: List[str]
    objectives: List[str]
    activities: List[str]
    resources: List[str]
    assessment: Optional[str]
    order: int
    is_customized: bool
    original_topic: Optional[str]
    status: str
    taught_at: Optional[str]
    teacher_notes: Optional[str]
    completed_by: Optional[str]

    @classmethod
    def from_model(cls, it: CurriculumItem) -> "CurriculumItemOut":
        return cls(
            id=it.id,
            curriculum_id=it.curriculum_id,
            week_number=it.week_number,
            topic=it.topic,
            sub_topics=list(it.sub_topics or []),
            objectives=list(it.objectives or []),
            activities=list(it.activities or []),
            resources=list(it.resources or []),
            assessment=it.assessment,
            order=it.order,
            is_customized=bool(it.is_customized),
            original_topic=it.original_topic,
            status=it.status.value,
            taught_at=_iso(it.taught_at),
            teacher_notes=it.teacher_notes,
            completed_by=it.completed_by,
        )


@dataclass
class CurriculumOut:
    id: str
    school_id: str
    class_level_id: Optional[str]
    class_id: Optional[str]
    subject_id: Optional[str]
    subject: Optional[str]
    teacher_id: str
    teacher_name: Optional[str]
    academic_year: str
    term_id: Optional[str]
    term_name: Optional[str]
    reference_curriculum_id: Optional[str]
    is_template_based: bool
    customizations: int
    status: str
    submitted_at: Optional[str]
    approved_by: Optional[str]
    approved_at: Optional[str]
    rejected_at: Optional[str]
    rejection_reason: Optional[str]
    is_active: bool
    total_weeks: int
    completed_weeks: int
    progress_percentage: int
    items: List[CurriculumItemOut] = field(default_factory=list)

    @classmethod
    def from_model(cls, c: Curriculum) -> "CurriculumOut":
        items = list(c.items or [])
        total = len(items)
        done = sum(1 for i in items if i.status.value == "COMPLETED")
        return cls(
            id=c.id,
            school_id=c.school_id,
            class_level_id=c.class_level_id,
            class_id=c.class_id,
            subject_id=c.subject_id,
            subject=c.display_subject,
            teacher_id=c.teacher_id,
            teacher_name=(c.teacher.display_name if c.teacher else None),
            academic_year=c.academic_year,
            term_id=c.term_id,
            term_name=(c.term.name if c.term else None),
            reference_curriculum_id=c.reference_curriculum_id,
            is_template_based=bool(c.is_template_based),
            customizations=c.customizations or 0,
            status=c.status.value,
            submitted_at=_iso(c.submitted_at),
            approved_by=c.approved_by,
            approved_at=_iso(c.approved_at),
            rejected_at=_iso(c.rejected_at),
            rejection_reason=c.rejection_reason,
            is_active=bool(c.is_active),
            total_weeks=total,
            completed_weeks=done,
            progress_percentage=(round(done / total * 100) if total else 0),
            items=[CurriculumItemOut.from_model(i) for i in items],
        )

    def to_dict(self) -> dict:
        return asdict(self)
