# blueprints/catalog/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy import or_

from extensions import db, atomic
from errors import NotFound, ValidationFailed
from models import ReferenceSubject, ReferenceCurriculum, ReferenceWeek, ClassLevel, Subject
from .levels import ClassLevelCodes

log = logging.getLogger(__name__)


def _escape_like(s: str) -> str:
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class WeekIn:
    week_number: int
    topic: str
    objectives: List[str] = field(default_factory=list)
    sub_topics: List[str] = field(default_factory=list)
    activities: List[str] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)
    assessment: Optional[str] = None
    duration: Optional[str] = None


class ReferenceCatalog:
    """Доступ к национальному справочнику предметов и шаблонов."""

    def __init__(self, codes: Optional[ClassLevelCodes] = None):
        self.codes = codes or ClassLevelCodes()

    # ---------- subjects ----------
    def list_subjects(self, school_type: str | None = None, category: str | None = None) -> List[ReferenceSubject]:
        q = ReferenceSubject.query.filter(ReferenceSubject.is_active.is_(True))
        if category:
            q = q.filter(ReferenceSubject.category == category)
        rows = q.order_by(ReferenceSubject.category.asc(), ReferenceSubject.name.asc()).all()
        if school_type:
            # school_types: JSON-массив, фильтруем на стороне Python
            rows = [s for s in rows if school_type in (s.school_types or [])]
        return rows

    def get_subject_by_code(self, code: str) -> Optional[ReferenceSubject]:
        return ReferenceSubject.query.filter_by(code=code).first()

    def match_subjects(self, query: str) -> List[ReferenceSubject]:
        """Кандидаты по коду (точно) или по имени (подстрока без учёта регистра).

        Порядок: точное имя, точный код, затем более короткие имена,
        чтобы "Mathematics" не уходило в "Further Mathematics".
        """
        q = (query or "").strip()
        if not q:
            return []
        rows = (ReferenceSubject.query
                .filter(ReferenceSubject.is_active.is_(True))
                .filter(or_(ReferenceSubject.code == q,
                            ReferenceSubject.name.ilike(f"%{_escape_like(q)}%", escape="\\")))
                .all())
        lowered = q.lower()
        return sorted(rows, key=lambda s: (s.name.lower() != lowered, s.code != q, len(s.name), s.name))

    # ---------- templates ----------
    def template_for(self, subject_query: str, class_level_code: str, term: int) -> Optional[ReferenceCurriculum]:
        for subj in self.match_subjects(subject_query):
            tpl = ReferenceCurriculum.query.filter_by(
                subject_id=subj.id, class_level=class_level_code, term=term
            ).first()
            if tpl:
                return tpl
        return None

    def find_template(self, subject_query: str, class_level_name: str, school_type: str,
                      term: int) -> Optional[ReferenceCurriculum]:
        code = self.codes.code_for(class_level_name, school_type)
        if not code:
            return None
        return self.template_for(subject_query, code, term)

    def template_for_school_subject(self, subject: Subject, class_level: ClassLevel,
                                    term: int) -> Optional[ReferenceCurriculum]:
        """Шаблон для предмета школы: сначала по имени, потом по коду.

        Справочник и предметы школы ведутся независимо, имена могут расходиться.
        """
        code = self.codes.code_for(class_level.name, class_level.type)
        if not code:
            log.info("no class level code", extra={"event": "template_skip"})
            return None
        tpl = self.template_for(subject.name, code, term)
        if not tpl and subject.code:
            tpl = self.template_for(subject.code, code, term)
        return tpl

    def get_template(self, template_id: str) -> Optional[ReferenceCurriculum]:
        return db.session.get(ReferenceCurriculum, template_id)

    def list_templates(self, *, school_type: str | None = None, class_level: str | None = None,
                       term: int | None = None, subject_id: str | None = None) -> List[ReferenceCurriculum]:
        q = ReferenceCurriculum.query
        if class_level:
            q = q.filter(ReferenceCurriculum.class_level == class_level)
        if term:
            q = q.filter(ReferenceCurriculum.term == term)
        if subject_id:
            q = q.filter(ReferenceCurriculum.subject_id == subject_id)
        rows = q.order_by(ReferenceCurriculum.class_level.asc(), ReferenceCurriculum.term.asc()).all()
        if school_type:
            rows = [t for t in rows if school_type in (t.subject.school_types or [])]
        return rows

    # ---------- seeding / admin ----------
    def upsert_subject(self, *, code: str, name: str, school_types: Iterable[str],
                       category: str | None = None, description: str | None = None) -> ReferenceSubject:
        with atomic():
            subj = self.get_subject_by_code(code)
            if not subj:
                subj = ReferenceSubject(code=code)
                db.session.add(subj)
            subj.name = name
            subj.category = category
            subj.school_types = list(school_types)
            subj.description = description
        return subj

    def upsert_template(self, *, subject_code: str, class_level: str, term: int,
                        weeks: List[WeekIn], description: str | None = None) -> ReferenceCurriculum:
        if term not in (1, 2, 3):
            raise ValidationFailed("Term must be 1, 2 or 3")
        numbers = [w.week_number for w in weeks]
        if len(numbers) != len(set(numbers)):
            raise ValidationFailed("Duplicate week numbers in template", details={"weeks": numbers})

        subj = self.get_subject_by_code(subject_code)
        if not subj:
            raise NotFound(f"Reference subject with code {subject_code} not found")

        with atomic():
            tpl = ReferenceCurriculum.query.filter_by(subject_id=subj.id, class_level=class_level, term=term).first()
            if tpl:
                tpl.weeks.clear()
                # удаляем старые недели до вставки новых (уникальность номера недели)
                db.session.flush()
            else:
                tpl = ReferenceCurriculum(subject=subj, class_level=class_level, term=term)
                db.session.add(tpl)
            tpl.description = description
            for w in sorted(weeks, key=lambda x: x.week_number):
                tpl.weeks.append(ReferenceWeek(
                    week_number=w.week_number,
                    topic=w.topic,
                    sub_topics=list(w.sub_topics or []),
                    objectives=list(w.objectives or []),
                    activities=list(w.activities or []),
                    resources=list(w.resources or []),
                    assessment=w.assessment,
                    duration=w.duration,
                ))
        log.info("reference template upserted", extra={"event": "template_upsert"})
        return tpl
