# blueprints/curriculum/access.py
"""Проверки прав на план: владелец, назначенный по расписанию, администратор."""
from __future__ import annotations
from typing import Optional

from flask import current_app

from extensions import db
from errors import Forbidden
from models import Curriculum, Role, School, Teacher
from blueprints.timetable.services import resolve_subjects, find_subject


def is_admin(user) -> bool:
    roles = current_app.config.get("ADMIN_ROLES", (Role.SCHOOL_ADMIN.value, Role.SUPER_ADMIN.value))
    return getattr(user, "role", None) in roles


def current_teacher(user, school_id: str) -> Optional[Teacher]:
    """Профиль преподавателя из сессии, если он относится к этой школе."""
    teacher_id = getattr(user, "teacher_id", None)
    if not teacher_id:
        return None
    teacher = db.session.get(Teacher, teacher_id)
    if not teacher or teacher.school_id != school_id:
        return None
    return teacher


def require_teacher(user, school: School) -> Teacher:
    if not getattr(user, "teacher_id", None):
        raise Forbidden("Teacher ID not found in context")
    teacher = current_teacher(user, school.id)
    if teacher is None:
        raise Forbidden("Teacher not found in this school")
    return teacher


def is_owner(user, curriculum: Curriculum) -> bool:
    teacher = current_teacher(user, curriculum.school_id)
    return teacher is not None and teacher.id == curriculum.teacher_id


def is_assigned(teacher_id: str, curriculum: Curriculum) -> bool:
    """Ведёт ли преподаватель предмет плана у этого класса по расписанию."""
    if not curriculum.subject_id:
        return False
    subjects = resolve_subjects(curriculum.school_id, curriculum.scope_id, curriculum.term_id)
    entry = find_subject(subjects, curriculum.subject_id)
    return entry is not None and entry.has_teacher(teacher_id)


def can_teach(user, curriculum: Curriculum, *, allow_admin: bool) -> bool:
    """Единое правило доступа к плану: (админ) | владелец | назначен по расписанию."""
    if allow_admin and is_admin(user):
        return True
    teacher = current_teacher(user, curriculum.school_id)
    if teacher is None:
        return False
    if teacher.id == curriculum.teacher_id:
        return True
    return is_assigned(teacher.id, curriculum)
