# blueprints/curriculum/summary.py
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from models import ItemStatus, School
from blueprints.timetable.services import TeacherRef, resolve_subjects
from .repository import CurriculumRepository


@dataclass
class SubjectSummary:
    subject_id: str
    subject_name: str
    subject_code: Optional[str]
    periods_per_week: int
    curriculum_id: Optional[str] = None
    status: Optional[str] = None
    teacher_id: Optional[str] = None
    teacher_name: Optional[str] = None
    weeks_total: int = 0
    weeks_completed: int = 0
    is_template_based: bool = False
    is_required: bool = True  # предмет стоит в расписании
    teachers: List[TeacherRef] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def curricula_summary(school: School, class_level_id: str, term_id: str,
                      repo: CurriculumRepository | None = None) -> List[SubjectSummary]:
    """Покрытие предметов расписания учебными планами и их прогресс."""
    subjects = resolve_subjects(school.id, class_level_id, term_id)
    if not subjects:
        return []
    repo = repo or CurriculumRepository()
    by_subject = {c.subject_id: c for c in repo.active_for_scope(
        school.id, class_level_id, term_id, [s.subject_id for s in subjects])}

    out: List[SubjectSummary] = []
    for s in subjects:
        row = SubjectSummary(
            subject_id=s.subject_id,
            subject_name=s.subject_name,
            subject_code=s.subject_code,
            periods_per_week=s.periods_per_week,
            teachers=list(s.teachers),
        )
        cur = by_subject.get(s.subject_id)
        if cur is not None:
            row.curriculum_id = cur.id
            row.status = cur.status.value
            row.teacher_id = cur.teacher_id
            row.teacher_name = cur.teacher.display_name if cur.teacher else None
            row.weeks_total = len(cur.items)
            row.weeks_completed = sum(1 for i in cur.items if i.status == ItemStatus.COMPLETED)
            row.is_template_based = bool(cur.is_template_based)
        out.append(row)
    return out
