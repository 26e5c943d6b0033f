# blueprints/curriculum/repository.py
from __future__ import annotations
from contextlib import contextmanager
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from extensions import db, atomic
from errors import Conflict, NotFound
from models import Curriculum, CurriculumItem, Subject
from .scope import Scope


class CurriculumRepository:
    """Узкие запросы к Curriculum/CurriculumItem, которые нужны движку."""

    @contextmanager
    def write(self):
        """Атомарная запись; гонка двух созданий падает на уникальном индексе -> Conflict."""
        try:
            with atomic() as session:
                yield session
        except IntegrityError as ex:
            raise Conflict(
                "A curriculum already exists for this class/subject/term combination",
                details={"db": str(getattr(ex, "orig", ex))},
            ) from ex

    def get(self, school_id: str, curriculum_id: str) -> Curriculum:
        cur = (Curriculum.query
               .options(selectinload(Curriculum.items))
               .filter_by(id=curriculum_id, school_id=school_id)
               .first())
        if not cur:
            raise NotFound("Curriculum not found")
        return cur

    def find_active(self, school_id: str, scope: Scope, *, term_id: str | None,
                    subject_id: str | None = None, subject_name: str | None = None,
                    exclude_id: str | None = None) -> Optional[Curriculum]:
        q = Curriculum.query.filter(Curriculum.school_id == school_id,
                                    Curriculum.term_id == term_id,
                                    Curriculum.is_active.is_(True))
        if scope.is_level:
            q = q.filter(Curriculum.class_level_id == scope.class_level_id)
        else:
            q = q.filter(Curriculum.class_id == scope.class_id)
        if subject_id:
            q = q.filter(Curriculum.subject_id == subject_id)
        elif subject_name:
            q = q.filter(Curriculum.subject_id.is_(None), Curriculum.subject_name == subject_name)
        if exclude_id:
            q = q.filter(Curriculum.id != exclude_id)
        return q.first()

    def ensure_no_active(self, school_id: str, scope: Scope, **kw) -> None:
        if self.find_active(school_id, scope, **kw):
            raise Conflict("A curriculum already exists for this class/subject/term combination")

    def item_for_week(self, curriculum: Curriculum, week_number: int) -> CurriculumItem:
        item = (CurriculumItem.query
                .filter_by(curriculum_id=curriculum.id, week_number=week_number)
                .order_by(CurriculumItem.order.asc())
                .first())
        if not item:
            raise NotFound(f"Week {week_number} not found in curriculum")
        return item

    def active_for_scope(self, school_id: str, scope_id: str, term_id: str,
                         subject_ids: Iterable[str]) -> List[Curriculum]:
        ids = list(subject_ids)
        if not ids:
            return []
        return (Curriculum.query
                .options(selectinload(Curriculum.items))
                .filter(Curriculum.school_id == school_id,
                        Curriculum.term_id == term_id,
                        Curriculum.is_active.is_(True),
                        Curriculum.subject_id.in_(ids),
                        or_(Curriculum.class_level_id == scope_id, Curriculum.class_id == scope_id))
                .all())

    def for_class(self, school_id: str, scope: Scope, *, subject: str | None = None,
                  academic_year: str | None = None, term_id: str | None = None) -> List[Curriculum]:
        q = Curriculum.query.filter(Curriculum.school_id == school_id, Curriculum.is_active.is_(True))
        if scope.is_level:
            q = q.filter(Curriculum.class_level_id == scope.class_level_id)
        else:
            q = q.filter(Curriculum.class_id == scope.class_id)
        if subject:
            q = q.outerjoin(Subject, Subject.id == Curriculum.subject_id).filter(
                or_(Curriculum.subject_name == subject, Subject.name == subject)
            )
        if academic_year:
            q = q.filter(Curriculum.academic_year == academic_year)
        if term_id:
            q = q.filter(Curriculum.term_id == term_id)
        return q.order_by(Curriculum.created_at.desc()).all()

    def replace_items(self, curriculum: Curriculum, items: List[CurriculumItem]) -> None:
        curriculum.items.clear()
        db.session.flush()
        curriculum.items.extend(items)

    def delete(self, curriculum: Curriculum) -> None:
        db.session.delete(curriculum)
