# blueprints/curriculum/services.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence

from flask import current_app

from extensions import db
from errors import Forbidden, InvalidState, NotFound, ServiceError, ValidationFailed
from models import (
    ClassLevel, Curriculum, CurriculumItem, CurriculumStatus, ItemStatus,
    ReferenceCurriculum, Role, School, Subject, Teacher, Term, utcnow,
)
from blueprints.catalog.levels import ClassLevelCodes
from blueprints.catalog.services import ReferenceCatalog
from blueprints.timetable.services import find_subject, resolve_subjects
from .access import can_teach, current_teacher, is_admin, is_assigned, require_teacher
from .repository import CurriculumRepository
from .schemas import ItemIn
from .scope import Scope, resolve_scope

log = logging.getLogger(__name__)

NOT_SCHEDULED = "Subject is not in the timetable for this class. Please set up the timetable first."


def build_skeleton(subject_name: str, weeks: int = 13) -> List[CurriculumItem]:
    """Заготовка на четверть, когда в справочнике нет шаблона.

    Неделя 1 вводная, середина четверти и последняя неделя отведены под контроль.
    """
    mid = (weeks + 1) // 2
    items: List[CurriculumItem] = []
    for n in range(1, weeks + 1):
        objectives: List[str] = []
        assessment = None
        if n == 1:
            topic = f"Introduction to {subject_name}"
            objectives = [f"Introduce key concepts of {subject_name}", "Set expectations for the term"]
        elif n == mid:
            topic = "Mid-Term Review and Assessment"
            assessment = "Mid-term assessment"
        elif n == weeks:
            topic = "Revision and End of Term Examination"
            assessment = "End of term examination"
        else:
            topic = f"{subject_name} - Week {n} Topic"
        items.append(CurriculumItem(
            week_number=n, topic=topic, sub_topics=[], objectives=objectives,
            activities=[], resources=[], assessment=assessment, order=n - 1,
            status=ItemStatus.PENDING,
        ))
    return items


def items_from_template(tpl: ReferenceCurriculum) -> List[CurriculumItem]:
    return [
        CurriculumItem(
            week_number=w.week_number,
            topic=w.topic,
            sub_topics=list(w.sub_topics or []),
            objectives=list(w.objectives or []),
            activities=list(w.activities or []),
            resources=list(w.resources or []),
            assessment=w.assessment,
            order=idx,
            status=ItemStatus.PENDING,
        )
        for idx, w in enumerate(tpl.weeks)
    ]


class CurriculumEngine:
    """Жизненный цикл учебного плана: создание, генерация, утверждение, прогресс.

    Все операции принимают школу (уже найденную) и вызывающего пользователя
    (``current_user`` или любой объект с ``id``, ``role``, ``teacher_id``).
    """

    def __init__(self, catalog: Optional[ReferenceCatalog] = None,
                 codes: Optional[ClassLevelCodes] = None,
                 repo: Optional[CurriculumRepository] = None):
        self._codes = codes
        self._catalog = catalog
        self.repo = repo or CurriculumRepository()

    @property
    def catalog(self) -> ReferenceCatalog:
        if self._catalog is None:
            codes = self._codes or ClassLevelCodes.from_config(current_app.config)
            self._catalog = ReferenceCatalog(codes)
        return self._catalog

    @property
    def term_weeks(self) -> int:
        return int(current_app.config.get("CURRICULUM_TERM_WEEKS", 13))

    # ---------- lookups ----------
    @staticmethod
    def school(ref: str | None) -> School:
        school = School.find(ref)
        if not school:
            raise NotFound("School not found")
        return school

    @staticmethod
    def level(school: School, class_level_id: str) -> ClassLevel:
        level = ClassLevel.query.filter_by(id=class_level_id, school_id=school.id).first()
        if not level:
            raise NotFound("Class level not found")
        return level

    @staticmethod
    def _subject(school: School, subject_id: str) -> Subject:
        subject = Subject.query.filter_by(id=subject_id, school_id=school.id).first()
        if not subject:
            raise NotFound("Subject not found")
        return subject

    @staticmethod
    def _term(school: School, term_id: str | None) -> Term:
        term = db.session.get(Term, term_id) if term_id else None
        if not term or term.school_id != school.id:
            raise NotFound("Term not found")
        return term

    @staticmethod
    def _academic_year(term: Term | None) -> str:
        if term and term.academic_session and term.academic_session.name:
            return term.academic_session.name
        return str(utcnow().year)

    def _items_from_input(self, items: Sequence[ItemIn]) -> List[CurriculumItem]:
        out: List[CurriculumItem] = []
        for idx, it in enumerate(items):
            week = it.week_number or idx + 1
            if week > self.term_weeks:
                raise ValidationFailed(
                    f"Week number must be between 1 and {self.term_weeks}",
                    details={"week_number": week},
                )
            out.append(CurriculumItem(
                week_number=week,
                topic=it.topic,
                sub_topics=list(it.sub_topics),
                objectives=list(it.objectives),
                activities=list(it.activities),
                resources=list(it.resources),
                assessment=it.assessment,
                order=it.order if it.order is not None else idx,
                status=ItemStatus.PENDING,
            ))
        return out

    # ---------- creation ----------
    def create(self, school: School, *, user, class_id: str, term_id: str,
               items: Sequence[ItemIn] = (), subject_id: str | None = None,
               subject: str | None = None, academic_year: str | None = None,
               reference_curriculum_id: str | None = None) -> Curriculum:
        """Ручное создание плана (класс или уровень определяется по class_id)."""
        scope = resolve_scope(school, class_id)
        teacher = require_teacher(user, school)
        term = self._term(school, term_id)

        subject_name = (subject or "").strip() or None
        if subject_id:
            self._subject(school, subject_id)
        elif not subject_name:
            raise ValidationFailed("Subject is required")

        if scope.is_level and subject_id:
            if not find_subject(resolve_subjects(school.id, scope.id, term.id), subject_id):
                raise ValidationFailed(NOT_SCHEDULED)

        self.repo.ensure_no_active(school.id, scope, term_id=term.id,
                                   subject_id=subject_id, subject_name=subject_name)

        tpl = None
        if reference_curriculum_id:
            tpl = self.catalog.get_template(reference_curriculum_id)
            if not tpl:
                raise NotFound("Reference curriculum not found")

        new_items = self._items_from_input(items)
        with self.repo.write():
            cur = Curriculum(
                school_id=school.id,
                class_level_id=scope.class_level_id,
                class_id=scope.class_id,
                subject_id=subject_id,
                subject_name=None if subject_id else subject_name,
                teacher_id=teacher.id,
                academic_year=academic_year or self._academic_year(term),
                term_id=term.id,
                reference_curriculum_id=tpl.id if tpl else None,
                is_template_based=tpl is not None,
                status=CurriculumStatus.DRAFT,
            )
            cur.items = new_items
            db.session.add(cur)
        log.info("curriculum created", extra={"event": "curriculum_create", "curriculum_id": cur.id})
        return cur

    def generate(self, school: School, *, user, class_level_id: str, subject_id: str,
                 term_id: str, teacher_id: str | None = None) -> Curriculum:
        """Сгенерировать план для уровня по шаблону справочника или заготовкой."""
        level = self.level(school, class_level_id)
        subject = self._subject(school, subject_id)
        term = self._term(school, term_id)

        if teacher_id:
            teacher = db.session.get(Teacher, teacher_id)
            if not teacher or teacher.school_id != school.id:
                raise Forbidden("Teacher not found in this school")
        else:
            teacher = require_teacher(user, school)

        if not find_subject(resolve_subjects(school.id, level.id, term.id), subject.id):
            raise ValidationFailed(NOT_SCHEDULED)

        scope = Scope(class_level_id=level.id)
        self.repo.ensure_no_active(school.id, scope, term_id=term.id, subject_id=subject.id)

        tpl = self.catalog.template_for_school_subject(subject, level, term.number)
        if tpl is not None and tpl.weeks:
            items = items_from_template(tpl)
        else:
            tpl = None
            items = build_skeleton(subject.name, self.term_weeks)

        with self.repo.write():
            cur = Curriculum(
                school_id=school.id,
                class_level_id=level.id,
                subject_id=subject.id,
                teacher_id=teacher.id,
                academic_year=self._academic_year(term),
                term_id=term.id,
                reference_curriculum_id=tpl.id if tpl else None,
                is_template_based=tpl is not None,
                status=CurriculumStatus.DRAFT,
            )
            cur.items = items
            db.session.add(cur)
        log.info("curriculum generated", extra={
            "event": "curriculum_generate", "curriculum_id": cur.id,
            "template": bool(tpl), "weeks": len(items),
        })
        return cur

    def bulk_generate(self, school: School, *, user, class_level_id: str, term_id: str,
                      subject_ids: Sequence[str], teacher_id: str | None = None) -> Dict[str, Any]:
        """По одному плану на предмет; ошибка одного предмета не прерывает остальные."""
        created: List[str] = []
        failed: List[Dict[str, str]] = []
        for sid in subject_ids:
            try:
                cur = self.generate(school, user=user, class_level_id=class_level_id,
                                    subject_id=sid, term_id=term_id, teacher_id=teacher_id)
            except ServiceError as e:
                db.session.rollback()
                failed.append({"subject_id": sid, "error": e.message, "code": e.code})
                continue
            created.append(cur.id)
        log.info("bulk generation finished", extra={
            "event": "curriculum_bulk_generate", "created_count": len(created), "failed_count": len(failed),
        })
        return {"created": created, "failed": failed}

    # ---------- reads ----------
    def get(self, school: School, curriculum_id: str) -> Curriculum:
        return self.repo.get(school.id, curriculum_id)

    def get_for_class(self, school: School, class_id: str, *, user=None, subject: str | None = None,
                      academic_year: str | None = None, term_id: str | None = None) -> Optional[Curriculum]:
        """Последний активный план класса; преподаватель видит только свои или назначенные."""
        scope = resolve_scope(school, class_id)
        rows = self.repo.for_class(school.id, scope, subject=subject,
                                   academic_year=academic_year, term_id=term_id)
        if user is not None and getattr(user, "role", None) == Role.TEACHER.value:
            teacher = current_teacher(user, school.id)
            if teacher is None:
                return None
            rows = [c for c in rows if c.teacher_id == teacher.id or is_assigned(teacher.id, c)]
        return rows[0] if rows else None

    # ---------- update / delete ----------
    def update(self, school: School, curriculum_id: str, *, user,
               items: Optional[Sequence[ItemIn]] = None, academic_year: str | None = None,
               term_id: str | None = None) -> Curriculum:
        cur = self.repo.get(school.id, curriculum_id)
        if not can_teach(user, cur, allow_admin=True):
            raise Forbidden("You are not authorized to edit this curriculum")

        term = None
        if term_id and term_id != cur.term_id:
            term = self._term(school, term_id)
            scope = Scope(class_level_id=cur.class_level_id, class_id=cur.class_id)
            self.repo.ensure_no_active(school.id, scope, term_id=term.id, subject_id=cur.subject_id,
                                       subject_name=cur.subject_name, exclude_id=cur.id)

        new_items = self._items_from_input(items) if items is not None else None
        with self.repo.write():
            if academic_year:
                cur.academic_year = academic_year
            if term is not None:
                cur.term_id = term.id
            if new_items is not None:
                self._track_customizations(cur, new_items)
                self.repo.replace_items(cur, new_items)
        log.info("curriculum updated", extra={"event": "curriculum_update", "curriculum_id": cur.id})
        return cur

    @staticmethod
    def _track_customizations(cur: Curriculum, new_items: List[CurriculumItem]) -> None:
        """Сравнение с пунктами до правки по номеру недели.

        Счётчик растёт на каждую неделю со сменённой темой при каждом обновлении,
        повторная правка той же недели тоже считается.
        """
        previous = {}
        for it in cur.items:
            previous.setdefault(it.week_number, it)
        for it in new_items:
            prev = previous.get(it.week_number)
            if prev is None:
                it.is_customized = bool(cur.is_template_based)
                continue
            if cur.is_template_based and prev.topic != it.topic:
                cur.customizations = (cur.customizations or 0) + 1
                it.is_customized = True
                it.original_topic = prev.original_topic or prev.topic
            else:
                it.is_customized = prev.is_customized
                it.original_topic = prev.original_topic

    def delete(self, school: School, curriculum_id: str, *, user) -> None:
        cur = self.repo.get(school.id, curriculum_id)
        if not is_admin(user):
            teacher = require_teacher(user, school)
            if cur.teacher_id != teacher.id:
                raise Forbidden("You can only delete your own curriculum")
        with self.repo.write():
            self.repo.delete(cur)
        log.info("curriculum deleted", extra={"event": "curriculum_delete", "curriculum_id": curriculum_id})

    # ---------- status ----------
    def _transition(self, cur: Curriculum, status: CurriculumStatus, **fields) -> Curriculum:
        with self.repo.write():
            prev = cur.status
            cur.status = status
            for k, v in fields.items():
                setattr(cur, k, v)
        log.info("curriculum status changed", extra={
            "event": "curriculum_status", "curriculum_id": cur.id,
            "from": prev.value, "to": status.value,
        })
        return cur

    def submit(self, school: School, curriculum_id: str, *, user) -> Curriculum:
        cur = self.repo.get(school.id, curriculum_id)
        teacher = current_teacher(user, school.id)
        if teacher is None or cur.teacher_id != teacher.id:
            raise Forbidden("Only the curriculum owner can submit for approval")
        if cur.status not in (CurriculumStatus.DRAFT, CurriculumStatus.REJECTED):
            raise InvalidState("Only draft or rejected curricula can be submitted")
        return self._transition(cur, CurriculumStatus.SUBMITTED,
                                submitted_at=utcnow(), rejection_reason=None)

    def approve(self, school: School, curriculum_id: str, *, user) -> Curriculum:
        if not is_admin(user):
            raise Forbidden("Only admins can approve curricula")
        cur = self.repo.get(school.id, curriculum_id)
        if cur.status != CurriculumStatus.SUBMITTED:
            raise InvalidState("Only submitted curricula can be approved")
        return self._transition(cur, CurriculumStatus.APPROVED,
                                approved_by=str(user.id), approved_at=utcnow())

    def reject(self, school: School, curriculum_id: str, *, user, reason: str | None) -> Curriculum:
        if not is_admin(user):
            raise Forbidden("Only admins can reject curricula")
        cur = self.repo.get(school.id, curriculum_id)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationFailed("Rejection reason is required")
        if cur.status != CurriculumStatus.SUBMITTED:
            raise InvalidState("Only submitted curricula can be rejected")
        return self._transition(cur, CurriculumStatus.REJECTED,
                                rejection_reason=reason, rejected_at=utcnow())

    def activate(self, school: School, curriculum_id: str, *, user) -> Curriculum:
        cur = self.repo.get(school.id, curriculum_id)
        if not can_teach(user, cur, allow_admin=True):
            raise Forbidden("You are not authorized to activate this curriculum")
        if cur.status != CurriculumStatus.APPROVED:
            raise InvalidState("Only approved curricula can be activated")
        return self._transition(cur, CurriculumStatus.ACTIVE)

    # ---------- progress ----------
    def _progress_teacher(self, school: School, cur: Curriculum, user) -> Teacher:
        teacher = require_teacher(user, school)
        if cur.teacher_id != teacher.id and not is_assigned(teacher.id, cur):
            raise Forbidden("You are not authorized to track progress for this curriculum")
        return teacher

    def mark_week_complete(self, school: School, curriculum_id: str, week_number: int, *,
                           user, notes: str | None = None) -> CurriculumItem:
        cur = self.repo.get(school.id, curriculum_id)
        teacher = self._progress_teacher(school, cur, user)
        item = self.repo.item_for_week(cur, week_number)
        with self.repo.write():
            item.status = ItemStatus.COMPLETED
            item.taught_at = utcnow()
            item.teacher_notes = notes or None
            item.completed_by = teacher.id
        return item

    def mark_week_in_progress(self, school: School, curriculum_id: str, week_number: int, *,
                              user) -> CurriculumItem:
        cur = self.repo.get(school.id, curriculum_id)
        if not is_admin(user):
            require_teacher(user, school)
        item = self.repo.item_for_week(cur, week_number)
        if item.status not in (ItemStatus.PENDING, ItemStatus.IN_PROGRESS):
            raise InvalidState(f"Week {week_number} is already {item.status.value.lower()}")
        with self.repo.write():
            item.status = ItemStatus.IN_PROGRESS
        return item

    def skip_week(self, school: School, curriculum_id: str, week_number: int, *,
                  user, reason: str | None) -> CurriculumItem:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationFailed("Reason is required to skip a week")
        cur = self.repo.get(school.id, curriculum_id)
        teacher = self._progress_teacher(school, cur, user)
        item = self.repo.item_for_week(cur, week_number)
        with self.repo.write():
            item.status = ItemStatus.SKIPPED
            item.teacher_notes = reason
            item.completed_by = teacher.id
        return item
