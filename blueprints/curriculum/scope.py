# blueprints/curriculum/scope.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from extensions import db
from errors import NotFound
from models import ClassArm, ClassLevel, School, SchoolClass, SchoolType


@dataclass(frozen=True)
class Scope:
    """Привязка плана: либо уровень (primary/secondary), либо плоский класс (tertiary)."""
    class_level_id: Optional[str] = None
    class_id: Optional[str] = None

    def __post_init__(self):
        if bool(self.class_level_id) == bool(self.class_id):
            raise ValueError("exactly one of class_level_id / class_id must be set")

    @property
    def id(self) -> str:
        return self.class_level_id or self.class_id

    @property
    def is_level(self) -> bool:
        return self.class_level_id is not None


def resolve_scope(school: School, class_id: str) -> Scope:
    # 1) секция уровня
    arm: ClassArm | None = db.session.get(ClassArm, class_id)
    if arm and arm.class_level and arm.class_level.school_id == school.id:
        return Scope(class_level_id=arm.class_level_id)

    # 2) плоский класс школы
    klass: SchoolClass | None = SchoolClass.query.filter_by(id=class_id, school_id=school.id).first()
    if klass:
        if klass.type != SchoolType.TERTIARY.value and klass.class_level:
            # legacy: класс primary/secondary, заведённый по-старому; ищем уровень по имени
            level = ClassLevel.query.filter_by(
                school_id=school.id, name=klass.class_level, type=klass.type
            ).first()
            if level:
                return Scope(class_level_id=level.id)
        return Scope(class_id=klass.id)

    raise NotFound("Class not found")
