from __future__ import annotations
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Enum, ForeignKey, UniqueConstraint, Index, CheckConstraint, Boolean, DateTime,
    Integer, String, Text, JSON, text
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db
from . import new_id, utcnow


class CurriculumStatus(str, PyEnum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"  # закрытие четверти, вне этого модуля


class ItemStatus(str, PyEnum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"


# ---------- Reference catalog (национальные шаблоны) ----------
class ReferenceSubject(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(20))  # CORE / ELECTIVE / VOCATIONAL
    school_types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<ReferenceSubject {self.code}>"


class ReferenceCurriculum(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    subject_id: Mapped[str] = mapped_column(ForeignKey("reference_subject.id", ondelete="CASCADE"), nullable=False)
    class_level: Mapped[str] = mapped_column(String(20), nullable=False)  # PRIMARY_1, JSS_1 ...
    term: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    subject = relationship("ReferenceSubject")
    weeks = relationship(
        "ReferenceWeek", back_populates="curriculum",
        order_by="ReferenceWeek.week_number", cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("subject_id", "class_level", "term", name="uq_reference_curriculum_tuple"),
    )


class ReferenceWeek(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    curriculum_id: Mapped[str] = mapped_column(ForeignKey("reference_curriculum.id", ondelete="CASCADE"), nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    topic: Mapped[str] = mapped_column(String(500), nullable=False)
    sub_topics: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    objectives: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    activities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    resources: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    assessment: Mapped[str | None] = mapped_column(Text)
    duration: Mapped[str | None] = mapped_column(String(100))

    curriculum = relationship("ReferenceCurriculum", back_populates="weeks")

    __table_args__ = (
        UniqueConstraint("curriculum_id", "week_number", name="uq_reference_week_number"),
    )


# ---------- School curriculum ----------
class Curriculum(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(ForeignKey("school.id", ondelete="CASCADE"), nullable=False, index=True)
    # ровно одно из двух (см. CheckConstraint)
    class_level_id: Mapped[str | None] = mapped_column(ForeignKey("class_level.id", ondelete="CASCADE"))
    class_id: Mapped[str | None] = mapped_column(ForeignKey("school_class.id", ondelete="CASCADE"))
    subject_id: Mapped[str | None] = mapped_column(ForeignKey("subject.id", ondelete="SET NULL"))
    subject_name: Mapped[str | None] = mapped_column(String(255))  # legacy: предмет строкой
    teacher_id: Mapped[str] = mapped_column(ForeignKey("teacher.id", ondelete="RESTRICT"), nullable=False, index=True)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    term_id: Mapped[str | None] = mapped_column(ForeignKey("term.id", ondelete="SET NULL"))

    reference_curriculum_id: Mapped[str | None] = mapped_column(ForeignKey("reference_curriculum.id", ondelete="SET NULL"))
    is_template_based: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    customizations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    status: Mapped[CurriculumStatus] = mapped_column(Enum(CurriculumStatus), nullable=False, default=CurriculumStatus.DRAFT)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime)
    approved_by: Mapped[str | None] = mapped_column(String(36))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime)
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    teacher = relationship("Teacher")
    term = relationship("Term")
    subject = relationship("Subject")
    reference_curriculum = relationship("ReferenceCurriculum")
    items = relationship(
        "CurriculumItem", back_populates="curriculum",
        order_by="CurriculumItem.order", cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "(class_level_id IS NULL) <> (class_id IS NULL)",
            name="ck_curriculum_single_scope",
        ),
        # не больше одного активного плана на (школа, scope, предмет, четверть)
        Index(
            "uq_curriculum_active_level", "school_id", "class_level_id", "subject_id", "term_id",
            unique=True,
            sqlite_where=text("is_active = 1 AND class_level_id IS NOT NULL"),
            postgresql_where=text("is_active AND class_level_id IS NOT NULL"),
        ),
        Index(
            "uq_curriculum_active_class", "school_id", "class_id", "subject_id", "term_id",
            unique=True,
            sqlite_where=text("is_active = 1 AND class_id IS NOT NULL"),
            postgresql_where=text("is_active AND class_id IS NOT NULL"),
        ),
    )

    @property
    def scope_id(self) -> str | None:
        return self.class_level_id or self.class_id

    @property
    def display_subject(self) -> str | None:
        return self.subject_name or (self.subject.name if self.subject else None)

    def __repr__(self):
        return f"<Curriculum {self.id} {self.status.value}>"


class CurriculumItem(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    curriculum_id: Mapped[str] = mapped_column(ForeignKey("curriculum.id", ondelete="CASCADE"), nullable=False, index=True)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    topic: Mapped[str] = mapped_column(String(500), nullable=False)
    sub_topics: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    objectives: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    activities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    resources: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    assessment: Mapped[str | None] = mapped_column(Text)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_customized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    original_topic: Mapped[str | None] = mapped_column(String(500))

    status: Mapped[ItemStatus] = mapped_column(Enum(ItemStatus), nullable=False, default=ItemStatus.PENDING)
    taught_at: Mapped[datetime | None] = mapped_column(DateTime)
    teacher_notes: Mapped[str | None] = mapped_column(Text)
    completed_by: Mapped[str | None] = mapped_column(String(36))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    curriculum = relationship("Curriculum", back_populates="items")

    __table_args__ = (
        Index("ix_curriculum_item_week", "curriculum_id", "week_number"),
    )
