from __future__ import annotations
import pytest

from blueprints.curriculum.schemas import CurriculumOut, ItemIn
from blueprints.curriculum.services import CurriculumEngine, build_skeleton
from errors import Conflict, Forbidden, NotFound, ValidationFailed
from extensions import db
from models import Curriculum, CurriculumStatus, ItemStatus


@pytest.fixture()
def engine(app):
    return CurriculumEngine()


def _generate(engine, w, subject=None, level=None, term=None, user=None, **kw):
    return engine.generate(
        w.school, user=user or w.ade_user,
        class_level_id=(level or w.p1).id,
        subject_id=(subject or w.math).id,
        term_id=(term or w.term1).id, **kw,
    )


# ---------- generation ----------
def test_generate_from_template(engine, world):
    cur = _generate(engine, world)
    assert cur.status == CurriculumStatus.DRAFT
    assert cur.is_template_based is True
    assert cur.reference_curriculum_id == world.template.id
    assert cur.class_level_id == world.p1.id and cur.class_id is None
    assert cur.teacher_id == world.ade.id
    assert cur.academic_year == "2024/2025"
    assert [(i.week_number, i.topic) for i in cur.items] == [(1, "Counting"), (2, "Addition")]
    assert [i.order for i in cur.items] == [0, 1]
    assert all(i.status == ItemStatus.PENDING for i in cur.items)
    assert cur.items[0].sub_topics == ["1-10"]
    assert cur.items[1].assessment == "Addition quiz"


def test_generate_without_template_builds_skeleton(engine, world):
    cur = _generate(engine, world, subject=world.civics, level=world.jss2, term=world.term2)
    items = cur.items
    assert cur.is_template_based is False
    assert cur.reference_curriculum_id is None
    assert len(items) == 13
    assert all(i.topic for i in items)
    assert items[0].topic == "Introduction to Civics"
    assert items[0].objectives
    assert items[6].topic == "Mid-Term Review and Assessment"
    assert items[6].assessment == "Mid-term assessment"
    assert items[12].topic == "Revision and End of Term Examination"
    assert items[12].assessment == "End of term examination"
    assert items[3].topic == "Civics - Week 4 Topic"
    assert not items[3].objectives and items[3].assessment is None


def test_skeleton_follows_term_length():
    items = build_skeleton("Music", weeks=11)
    assert len(items) == 11
    assert items[5].topic == "Mid-Term Review and Assessment"
    assert items[-1].topic == "Revision and End of Term Examination"


def test_template_without_weeks_falls_back(engine, world):
    for w in list(world.template.weeks):
        db.session.delete(w)
    db.session.commit()
    cur = _generate(engine, world)
    assert cur.is_template_based is False
    assert len(cur.items) == 13


def test_second_generation_conflicts(engine, world):
    _generate(engine, world)
    with pytest.raises(Conflict):
        _generate(engine, world)
    assert Curriculum.query.filter_by(is_active=True).count() == 1


def test_concurrent_duplicate_hits_unique_index(engine, world, monkeypatch):
    # оба запроса прошли проверку до записи: второй падает на уникальном индексе
    monkeypatch.setattr(engine.repo, "ensure_no_active", lambda *a, **kw: None)
    _generate(engine, world)
    with pytest.raises(Conflict):
        _generate(engine, world)
    assert Curriculum.query.filter_by(is_active=True).count() == 1


def test_inactive_curriculum_does_not_block(engine, world):
    cur = _generate(engine, world)
    cur.is_active = False
    db.session.commit()
    assert _generate(engine, world).id != cur.id


def test_subject_not_in_timetable_is_validation(engine, world):
    with pytest.raises(ValidationFailed):
        _generate(engine, world, subject=world.art)
    assert Curriculum.query.count() == 0


def test_generate_foreign_references_not_found(engine, world):
    with pytest.raises(NotFound):
        _generate(engine, world, level=world.other_level)
    with pytest.raises(NotFound):
        _generate(engine, world, term=world.other_term)


def test_explicit_teacher_must_belong_to_school(engine, world):
    with pytest.raises(Forbidden):
        _generate(engine, world, user=world.admin, teacher_id=world.stranger.id)
    cur = _generate(engine, world, user=world.admin, teacher_id=world.bisi.id)
    assert cur.teacher_id == world.bisi.id


def test_generate_without_teacher_profile_forbidden(engine, world):
    with pytest.raises(Forbidden):
        _generate(engine, world, user=world.no_profile)


# ---------- bulk ----------
def test_bulk_generation_reports_partial_success(engine, world):
    _generate(engine, world, subject=world.english, user=world.bisi_user)
    result = engine.bulk_generate(
        world.school, user=world.ade_user, class_level_id=world.p1.id, term_id=world.term1.id,
        subject_ids=[world.math.id, world.english.id, world.art.id, "missing"],
    )
    assert len(result["created"]) == 1
    failed = {f["subject_id"]: f["code"] for f in result["failed"]}
    assert failed == {
        world.english.id: "conflict",
        world.art.id: "validation_error",
        "missing": "not_found",
    }
    assert Curriculum.query.count() == 2


# ---------- manual create ----------
def test_create_for_arm_targets_level(engine, world):
    cur = engine.create(world.school, user=world.ade_user, class_id=world.p1a.id,
                        subject_id=world.math.id, term_id=world.term1.id,
                        items=[ItemIn(topic="Shapes"), ItemIn(week=5, topic="Patterns", order=9)])
    assert cur.class_level_id == world.p1.id
    assert cur.is_template_based is False
    assert [(i.week_number, i.order) for i in cur.items] == [(1, 0), (5, 9)]


def test_create_checks_timetable_for_level(engine, world):
    with pytest.raises(ValidationFailed):
        engine.create(world.school, user=world.ade_user, class_id=world.p1a.id,
                      subject_id=world.art.id, term_id=world.term1.id)


def test_create_for_tertiary_class_with_subject_name(engine, world):
    cur = engine.create(world.school, user=world.chi_user, class_id=world.diploma.id,
                        subject="Bookkeeping", term_id=world.term1.id, academic_year="2025",
                        items=[ItemIn(week_number=1, topic="Ledgers")])
    assert cur.class_id == world.diploma.id and cur.class_level_id is None
    assert cur.display_subject == "Bookkeeping"
    assert cur.academic_year == "2025"
    with pytest.raises(Conflict):
        engine.create(world.school, user=world.chi_user, class_id=world.diploma.id,
                      subject="Bookkeeping", term_id=world.term1.id)


def test_create_from_reference_template(engine, world):
    cur = engine.create(world.school, user=world.ade_user, class_id=world.p1a.id,
                        subject_id=world.math.id, term_id=world.term1.id,
                        reference_curriculum_id=world.template.id,
                        items=[ItemIn(week_number=1, topic="Counting")])
    assert cur.is_template_based is True


def test_create_rejects_week_beyond_term(engine, world):
    with pytest.raises(ValidationFailed):
        engine.create(world.school, user=world.ade_user, class_id=world.p1a.id,
                      subject_id=world.math.id, term_id=world.term1.id,
                      items=[ItemIn(week_number=14, topic="Extra")])


def test_create_requires_teacher_profile(engine, world):
    with pytest.raises(Forbidden):
        engine.create(world.school, user=world.admin, class_id=world.p1a.id,
                      subject_id=world.math.id, term_id=world.term1.id)


def test_item_in_rejects_blank_topic():
    with pytest.raises(ValueError):
        ItemIn(topic="   ")


# ---------- projection ----------
def test_output_projection(engine, world):
    cur = _generate(engine, world)
    out = CurriculumOut.from_model(cur).to_dict()
    assert out["subject"] == "Mathematics"
    assert out["teacher_name"] == "Ade Okafor"
    assert out["term_name"] == "First Term"
    assert out["total_weeks"] == 2
    assert out["completed_weeks"] == 0
    assert out["progress_percentage"] == 0
    assert out["items"][0]["status"] == "PENDING"
