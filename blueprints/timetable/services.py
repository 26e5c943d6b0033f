# blueprints/timetable/services.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import joinedload

from models import AcademicSession, ClassArm, ClassLevel, PeriodType, Term, TimetablePeriod


@dataclass
class TeacherRef:
    id: str
    name: str


@dataclass
class TimetableSubject:
    subject_id: str
    subject_name: str
    subject_code: Optional[str]
    periods_per_week: int
    teachers: List[TeacherRef] = field(default_factory=list)

    def has_teacher(self, teacher_id: str | None) -> bool:
        return bool(teacher_id) and any(t.id == teacher_id for t in self.teachers)


def _scope_ids(school_id: str, scope_id: str) -> List[str]:
    """Секции уровня этой школы + сам id.

    Сам id добавляется всегда: в старых записях в поле уровня иногда лежит
    id секции или плоского класса.
    """
    ids = [a.id for a in (ClassArm.query
                          .join(ClassLevel, ClassLevel.id == ClassArm.class_level_id)
                          .filter(ClassArm.class_level_id == scope_id, ClassLevel.school_id == school_id)
                          .with_entities(ClassArm.id))]
    if scope_id and scope_id not in ids:
        ids.append(scope_id)
    return ids


def resolve_subjects(school_id: str | None, scope_id: str | None,
                     term_id: str | None) -> List[TimetableSubject]:
    """Предметы класса/уровня в четверти по урокам расписания школы.

    Пересчитывается на каждый вызов: расписание меняется независимо
    от учебных планов. Порядок результата не гарантирован.
    """
    if not school_id or not scope_id or not term_id:
        return []
    ids = _scope_ids(school_id, scope_id)

    periods = (TimetablePeriod.query
               .join(Term, Term.id == TimetablePeriod.term_id)
               .join(AcademicSession, AcademicSession.id == Term.academic_session_id)
               .options(joinedload(TimetablePeriod.subject), joinedload(TimetablePeriod.teacher))
               .filter(AcademicSession.school_id == school_id,
                       TimetablePeriod.term_id == term_id,
                       TimetablePeriod.type == PeriodType.LESSON,
                       TimetablePeriod.subject_id.isnot(None),
                       or_(TimetablePeriod.class_arm_id.in_(ids), TimetablePeriod.class_id.in_(ids)))
               .all())

    by_subject: Dict[str, TimetableSubject] = {}
    teachers_seen: Dict[str, Dict[str, str]] = {}
    for p in periods:
        if not p.subject:
            continue
        entry = by_subject.get(p.subject_id)
        if entry is None:
            entry = TimetableSubject(
                subject_id=p.subject_id,
                subject_name=p.subject.name,
                subject_code=p.subject.code,
                periods_per_week=0,
            )
            by_subject[p.subject_id] = entry
            teachers_seen[p.subject_id] = {}
        entry.periods_per_week += 1
        if p.teacher:
            # dedup по id, имя: последнее встреченное
            teachers_seen[p.subject_id][p.teacher_id] = p.teacher.display_name

    out: List[TimetableSubject] = []
    for sid, entry in by_subject.items():
        entry.teachers = [TeacherRef(id=tid, name=name) for tid, name in teachers_seen[sid].items()]
        out.append(entry)
    return out


def find_subject(subjects: List[TimetableSubject], subject_id: str | None) -> Optional[TimetableSubject]:
    return next((s for s in subjects if s.subject_id == subject_id), None)
