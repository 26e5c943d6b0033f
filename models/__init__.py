from __future__ import annotations
import uuid
from datetime import datetime, date, timezone
from enum import Enum as PyEnum

from flask_login import UserMixin
from sqlalchemy import (
    Enum, ForeignKey, UniqueConstraint, Index, Boolean, Date, DateTime,
    Integer, String, or_
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Текущее время UTC без tzinfo: колонки DateTime хранят наивное UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------- Enums ----------
class SchoolType(str, PyEnum):
    NURSERY = "NURSERY"
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    TERTIARY = "TERTIARY"   # курсы/классы без разбиения на уровни


class PeriodType(str, PyEnum):
    LESSON = "LESSON"
    BREAK = "BREAK"
    ASSEMBLY = "ASSEMBLY"
    LUNCH = "LUNCH"


class Role(str, PyEnum):
    SUPER_ADMIN = "SUPER_ADMIN"
    SCHOOL_ADMIN = "SCHOOL_ADMIN"
    TEACHER = "TEACHER"


# ---------- Tenancy ----------
class School(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subdomain: Mapped[str | None] = mapped_column(String(100), unique=True, index=True)
    school_type: Mapped[SchoolType] = mapped_column(Enum(SchoolType), nullable=False, default=SchoolType.PRIMARY)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @classmethod
    def find(cls, ref: str | None) -> "School | None":
        """Школа по id или по поддомену."""
        if not ref:
            return None
        return cls.query.filter(or_(cls.id == ref, cls.subdomain == ref)).first()

    def __repr__(self):
        return f"<School {self.name}>"


class Teacher(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(ForeignKey("school.id", ondelete="CASCADE"), nullable=False, index=True)
    # публичный код сотрудника, например "TCH-001"
    teacher_code: Mapped[str | None] = mapped_column(String(50), unique=True)
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))

    school = relationship("School")

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<Teacher {self.display_name}>"


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # строковое поле, чтобы не зависеть от enum-типа конкретной БД
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=Role.TEACHER.value, index=True)
    is_active_flag: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    school_id: Mapped[str | None] = mapped_column(ForeignKey("school.id", ondelete="SET NULL"), nullable=True)
    # текущий профиль преподавателя в сессии
    teacher_id: Mapped[str | None] = mapped_column(ForeignKey("teacher.id", ondelete="SET NULL"), nullable=True)

    teacher = relationship("Teacher")

    # Flask-Login ожидает .is_active
    @property
    def is_active(self):
        return bool(self.is_active_flag)

    def __repr__(self):
        return f"<User {self.email}>"


# ---------- Academic calendar ----------
class AcademicSession(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(ForeignKey("school.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)  # "2024/2025"
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)


class Term(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    academic_session_id: Mapped[str] = mapped_column(ForeignKey("academic_session.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..3
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)

    academic_session = relationship("AcademicSession")

    @property
    def school_id(self) -> str | None:
        return self.academic_session.school_id if self.academic_session else None


# ---------- Classes ----------
class ClassLevel(db.Model):
    """Уровень (Primary 1, JSS 2 ...): для школ, организованных по уровням с секциями."""
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(ForeignKey("school.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # SchoolType.value
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    arms = relationship("ClassArm", back_populates="class_level", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_class_level_school_name_type", "school_id", "name", "type"),
    )


class ClassArm(db.Model):
    """Секция уровня (Primary 1 A, Primary 1 B)."""
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    class_level_id: Mapped[str] = mapped_column(ForeignKey("class_level.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    capacity: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    class_level = relationship("ClassLevel", back_populates="arms")


class SchoolClass(db.Model):
    """Плоский класс/курс (tertiary) и legacy-записи со ссылкой на уровень по имени."""
    __tablename__ = "school_class"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(ForeignKey("school.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50))
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    # legacy: имя уровня ("Primary 1") для двойного моделирования
    class_level: Mapped[str | None] = mapped_column(String(100))
    academic_year: Mapped[str | None] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Subject(db.Model):
    """Предмет школы (ведётся школой независимо от справочника)."""
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(ForeignKey("school.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(20))
    school_type: Mapped[str | None] = mapped_column(String(20))

    __table_args__ = (
        UniqueConstraint("school_id", "name", "school_type", name="uq_subject_school_name_type"),
    )


# ---------- Timetable ----------
class TimetablePeriod(db.Model):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    term_id: Mapped[str] = mapped_column(ForeignKey("term.id", ondelete="CASCADE"), nullable=False)
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)  # MONDAY..FRIDAY
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)    # "08:00"
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    type: Mapped[PeriodType] = mapped_column(Enum(PeriodType), nullable=False, default=PeriodType.LESSON)
    subject_id: Mapped[str | None] = mapped_column(ForeignKey("subject.id", ondelete="SET NULL"))
    teacher_id: Mapped[str | None] = mapped_column(ForeignKey("teacher.id", ondelete="SET NULL"))
    # период хранится либо по секции, либо по плоскому классу
    class_arm_id: Mapped[str | None] = mapped_column(String(36))
    class_id: Mapped[str | None] = mapped_column(String(36))

    subject = relationship("Subject")
    teacher = relationship("Teacher")

    __table_args__ = (
        Index("ix_period_term_arm", "term_id", "class_arm_id"),
        Index("ix_period_term_class", "term_id", "class_id"),
    )


from .curriculum import (  # noqa: E402
    CurriculumStatus, ItemStatus,
    ReferenceSubject, ReferenceCurriculum, ReferenceWeek,
    Curriculum, CurriculumItem,
)
