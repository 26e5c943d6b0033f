# blueprints/catalog/routes.py
from __future__ import annotations
from dataclasses import asdict

from flask import current_app, jsonify, request
from flask_login import login_required

from blueprints.auth.routes import super_admin_required
from errors import NotFound, ValidationFailed
from . import api_bp
from .levels import ClassLevelCodes
from .schemas import ReferenceSubjectIn, ReferenceSubjectOut, ReferenceTemplateIn, ReferenceTemplateOut
from .services import ReferenceCatalog, WeekIn


def _catalog() -> ReferenceCatalog:
    return ReferenceCatalog(ClassLevelCodes.from_config(current_app.config))


def _term_arg() -> int | None:
    raw = request.args.get("term")
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationFailed("term must be a number", details={"term": raw}) from None


@api_bp.get("/subjects")
@login_required
def subjects():
    rows = _catalog().list_subjects(request.args.get("school_type"), request.args.get("category"))
    return jsonify([asdict(ReferenceSubjectOut.from_model(s)) for s in rows])


@api_bp.get("/template")
@login_required
def find_template():
    """?subject=&class_level=&school_type=&term=: шаблон по имени/коду предмета и имени уровня."""
    subject = request.args.get("subject") or ""
    class_level = request.args.get("class_level") or ""
    school_type = request.args.get("school_type") or ""
    term = _term_arg()
    if not subject or not class_level or not school_type or term is None:
        raise ValidationFailed("subject, class_level, school_type and term are required")
    tpl = _catalog().find_template(subject, class_level, school_type, term)
    if not tpl:
        raise NotFound("Reference curriculum not found")
    return jsonify(asdict(ReferenceTemplateOut.from_model(tpl)))


@api_bp.get("/templates")
@login_required
def templates():
    rows = _catalog().list_templates(
        school_type=request.args.get("school_type") or None,
        class_level=request.args.get("class_level") or None,
        term=_term_arg(),
        subject_id=request.args.get("subject_id") or None,
    )
    return jsonify([asdict(ReferenceTemplateOut.from_model(t, with_weeks=False)) for t in rows])


@api_bp.get("/templates/<template_id>")
@login_required
def template(template_id: str):
    tpl = _catalog().get_template(template_id)
    if not tpl:
        raise NotFound("Reference curriculum not found")
    return jsonify(asdict(ReferenceTemplateOut.from_model(tpl)))


@api_bp.post("/subjects")
@super_admin_required
def upsert_subject():
    data = ReferenceSubjectIn.model_validate(request.get_json(silent=True) or {})
    subj = _catalog().upsert_subject(**data.model_dump())
    return jsonify(asdict(ReferenceSubjectOut.from_model(subj))), 201


@api_bp.post("/templates")
@super_admin_required
def upsert_template():
    data = ReferenceTemplateIn.model_validate(request.get_json(silent=True) or {})
    tpl = _catalog().upsert_template(
        subject_code=data.subject_code,
        class_level=data.class_level,
        term=data.term,
        description=data.description,
        weeks=[WeekIn(**w.model_dump()) for w in data.weeks],
    )
    return jsonify(asdict(ReferenceTemplateOut.from_model(tpl))), 201
