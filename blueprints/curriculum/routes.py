# blueprints/curriculum/routes.py
from __future__ import annotations
from dataclasses import asdict
from typing import Any

from flask import jsonify, request
from flask_login import current_user

from blueprints.auth.routes import check_tenant, staff_required
from blueprints.timetable.services import resolve_subjects
from models import School
from . import api_bp
from .schemas import (
    BulkGenerateIn, CurriculumCreateIn, CurriculumItemOut, CurriculumOut,
    CurriculumUpdateIn, GenerateIn, RejectIn, SkipIn, WeekNotesIn,
)
from .services import CurriculumEngine
from .summary import curricula_summary

PREFIX = "/schools/<school_ref>/curriculum"


# ----------------------- Helpers -----------------------
def ok(data: Any, status: int = 200):
    return jsonify(data), status


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _school(ref: str) -> School:
    school = CurriculumEngine.school(ref)
    check_tenant(school)
    return school


def _cur(c) -> dict:
    return CurriculumOut.from_model(c).to_dict()


# ----------------------- Timetable views -----------------------
@api_bp.get(f"{PREFIX}/class-level/<class_level_id>/subjects")
@staff_required
def timetable_subjects(school_ref: str, class_level_id: str):
    school = _school(school_ref)
    level = CurriculumEngine.level(school, class_level_id)
    term_id = request.args.get("term_id")
    return ok([asdict(s) for s in resolve_subjects(school.id, level.id, term_id)])


@api_bp.get(f"{PREFIX}/class-level/<class_level_id>/summary")
@staff_required
def summary(school_ref: str, class_level_id: str):
    school = _school(school_ref)
    level = CurriculumEngine.level(school, class_level_id)
    rows = curricula_summary(school, level.id, request.args.get("term_id"))
    return ok([r.to_dict() for r in rows])


# ----------------------- CRUD -----------------------
@api_bp.post(PREFIX)
@staff_required
def create(school_ref: str):
    school = _school(school_ref)
    data = CurriculumCreateIn.model_validate(_payload())
    cur = CurriculumEngine().create(school, user=current_user, **data.model_dump(exclude={"items"}),
                                    items=data.items)
    return ok(_cur(cur), 201)


@api_bp.post(f"{PREFIX}/generate")
@staff_required
def generate(school_ref: str):
    school = _school(school_ref)
    data = GenerateIn.model_validate(_payload())
    cur = CurriculumEngine().generate(school, user=current_user, **data.model_dump())
    return ok(_cur(cur), 201)


@api_bp.post(f"{PREFIX}/generate-bulk")
@staff_required
def generate_bulk(school_ref: str):
    school = _school(school_ref)
    data = BulkGenerateIn.model_validate(_payload())
    return ok(CurriculumEngine().bulk_generate(school, user=current_user, **data.model_dump()))


@api_bp.get(f"{PREFIX}/classes/<class_id>")
@staff_required
def for_class(school_ref: str, class_id: str):
    school = _school(school_ref)
    cur = CurriculumEngine().get_for_class(
        school, class_id, user=current_user,
        subject=request.args.get("subject") or None,
        academic_year=request.args.get("academic_year") or None,
        term_id=request.args.get("term_id") or None,
    )
    return ok(_cur(cur) if cur else None)


@api_bp.get(f"{PREFIX}/<curriculum_id>")
@staff_required
def get_one(school_ref: str, curriculum_id: str):
    school = _school(school_ref)
    return ok(_cur(CurriculumEngine().get(school, curriculum_id)))


@api_bp.patch(f"{PREFIX}/<curriculum_id>")
@staff_required
def update(school_ref: str, curriculum_id: str):
    school = _school(school_ref)
    data = CurriculumUpdateIn.model_validate(_payload())
    cur = CurriculumEngine().update(school, curriculum_id, user=current_user,
                                    items=data.items, academic_year=data.academic_year,
                                    term_id=data.term_id)
    return ok(_cur(cur))


@api_bp.delete(f"{PREFIX}/<curriculum_id>")
@staff_required
def delete(school_ref: str, curriculum_id: str):
    school = _school(school_ref)
    CurriculumEngine().delete(school, curriculum_id, user=current_user)
    return "", 204


# ----------------------- Status -----------------------
@api_bp.post(f"{PREFIX}/<curriculum_id>/submit")
@staff_required
def submit(school_ref: str, curriculum_id: str):
    school = _school(school_ref)
    return ok(_cur(CurriculumEngine().submit(school, curriculum_id, user=current_user)))


@api_bp.post(f"{PREFIX}/<curriculum_id>/approve")
@staff_required
def approve(school_ref: str, curriculum_id: str):
    school = _school(school_ref)
    return ok(_cur(CurriculumEngine().approve(school, curriculum_id, user=current_user)))


@api_bp.post(f"{PREFIX}/<curriculum_id>/reject")
@staff_required
def reject(school_ref: str, curriculum_id: str):
    school = _school(school_ref)
    data = RejectIn.model_validate(_payload())
    return ok(_cur(CurriculumEngine().reject(school, curriculum_id, user=current_user, reason=data.reason)))


@api_bp.post(f"{PREFIX}/<curriculum_id>/activate")
@staff_required
def activate(school_ref: str, curriculum_id: str):
    school = _school(school_ref)
    return ok(_cur(CurriculumEngine().activate(school, curriculum_id, user=current_user)))


# ----------------------- Progress -----------------------
@api_bp.post(f"{PREFIX}/<curriculum_id>/weeks/<int:week_number>/complete")
@staff_required
def week_complete(school_ref: str, curriculum_id: str, week_number: int):
    school = _school(school_ref)
    data = WeekNotesIn.model_validate(_payload())
    item = CurriculumEngine().mark_week_complete(school, curriculum_id, week_number,
                                                 user=current_user, notes=data.notes)
    return ok(asdict(CurriculumItemOut.from_model(item)))


@api_bp.post(f"{PREFIX}/<curriculum_id>/weeks/<int:week_number>/in-progress")
@staff_required
def week_in_progress(school_ref: str, curriculum_id: str, week_number: int):
    school = _school(school_ref)
    item = CurriculumEngine().mark_week_in_progress(school, curriculum_id, week_number, user=current_user)
    return ok(asdict(CurriculumItemOut.from_model(item)))


@api_bp.post(f"{PREFIX}/<curriculum_id>/weeks/<int:week_number>/skip")
@staff_required
def week_skip(school_ref: str, curriculum_id: str, week_number: int):
    school = _school(school_ref)
    data = SkipIn.model_validate(_payload())
    item = CurriculumEngine().skip_week(school, curriculum_id, week_number,
                                        user=current_user, reason=data.reason)
    return ok(asdict(CurriculumItemOut.from_model(item)))
