from __future__ import annotations
import pytest

from blueprints.curriculum.schemas import ItemIn
from blueprints.curriculum.services import CurriculumEngine
from blueprints.curriculum.summary import curricula_summary
from errors import Conflict, Forbidden, NotFound
from models import Curriculum, CurriculumItem


@pytest.fixture()
def engine(app):
    return CurriculumEngine()


@pytest.fixture()
def cur(engine, world):
    return engine.generate(world.school, user=world.ade_user, class_level_id=world.p1.id,
                           subject_id=world.math.id, term_id=world.term1.id)


def _items(*topics):
    return [ItemIn(week_number=n, topic=t) for n, t in enumerate(topics, start=1)]


# ---------- customization ----------
def test_changed_topic_counts_once_per_week(engine, world, cur):
    updated = engine.update(world.school, cur.id, user=world.ade_user, items=[
        ItemIn(week_number=1, topic="Counting to 20", objectives=["new"], resources=["beads"]),
        ItemIn(week_number=2, topic="Addition", objectives=["changed but same topic"]),
    ])
    assert updated.customizations == 1
    week1, week2 = updated.items
    assert week1.is_customized is True
    assert week1.original_topic == "Counting"
    assert week2.is_customized is False
    assert week2.objectives == ["changed but same topic"]


def test_unchanged_topics_never_count(engine, world, cur):
    updated = engine.update(world.school, cur.id, user=world.ade_user, items=_items("Counting", "Addition"))
    assert updated.customizations == 0


def test_edit_and_revert_counts_every_edit(engine, world, cur):
    engine.update(world.school, cur.id, user=world.ade_user, items=_items("Numbers", "Addition"))
    reverted = engine.update(world.school, cur.id, user=world.ade_user, items=_items("Counting", "Addition"))
    # счётчик считает события правки, а не число отличающихся недель
    assert reverted.customizations == 2
    assert reverted.items[0].original_topic == "Counting"


def test_items_are_replaced_wholesale(engine, world, cur):
    old_ids = {i.id for i in cur.items}
    updated = engine.update(world.school, cur.id, user=world.ade_user,
                            items=[ItemIn(week_number=3, topic="Ordering")])
    assert [(i.week_number, i.order) for i in updated.items] == [(3, 0)]
    assert updated.items[0].is_customized is True  # неделя вне шаблона
    assert CurriculumItem.query.filter(CurriculumItem.id.in_(old_ids)).count() == 0


def test_non_template_curriculum_never_counts(engine, world):
    cur = engine.create(world.school, user=world.ade_user, class_id=world.p1a.id,
                        subject_id=world.math.id, term_id=world.term1.id, items=_items("A", "B"))
    updated = engine.update(world.school, cur.id, user=world.ade_user, items=_items("C", "D"))
    assert updated.customizations == 0
    assert not any(i.is_customized for i in updated.items)


# ---------- update auth / fields ----------
def test_update_permissions(engine, world, cur):
    with pytest.raises(Forbidden):
        engine.update(world.school, cur.id, user=world.chi_user, academic_year="2030")
    assert engine.update(world.school, cur.id, user=world.admin, academic_year="2025/2026").academic_year == "2025/2026"


def test_assigned_teacher_may_update(engine, world):
    eng = engine.generate(world.school, user=world.admin, teacher_id=world.ade.id,
                          class_level_id=world.p1.id, subject_id=world.english.id, term_id=world.term1.id)
    updated = engine.update(world.school, eng.id, user=world.bisi_user, items=_items("Phonics"))
    assert updated.items[0].topic == "Phonics"


def test_term_change_checks_conflict(engine, world, cur):
    moved = engine.update(world.school, cur.id, user=world.ade_user, term_id=world.term2.id)
    assert moved.term_id == world.term2.id
    fresh = engine.generate(world.school, user=world.ade_user, class_level_id=world.p1.id,
                            subject_id=world.math.id, term_id=world.term1.id)
    with pytest.raises(Conflict):
        engine.update(world.school, fresh.id, user=world.ade_user, term_id=world.term2.id)
    with pytest.raises(NotFound):
        engine.update(world.school, fresh.id, user=world.ade_user, term_id=world.other_term.id)


# ---------- delete ----------
def test_delete_rules(engine, world, cur):
    with pytest.raises(Forbidden):
        engine.delete(world.school, cur.id, user=world.bisi_user)
    engine.delete(world.school, cur.id, user=world.ade_user)
    assert Curriculum.query.count() == 0
    assert CurriculumItem.query.count() == 0
    with pytest.raises(NotFound):
        engine.delete(world.school, cur.id, user=world.admin)


def test_admin_deletes_any(engine, world, cur):
    engine.delete(world.school, cur.id, user=world.admin)
    assert Curriculum.query.count() == 0


# ---------- reads ----------
def test_get_for_class_filters(engine, world, cur):
    assert engine.get_for_class(world.school, world.p1b.id).id == cur.id
    assert engine.get_for_class(world.school, world.p1a.id, subject="Mathematics").id == cur.id
    assert engine.get_for_class(world.school, world.p1a.id, subject="English") is None
    assert engine.get_for_class(world.school, world.p1a.id, academic_year="1999") is None
    assert engine.get_for_class(world.school, world.p1a.id, term_id=world.term2.id) is None


def test_get_for_class_teacher_visibility(engine, world, cur):
    assert engine.get_for_class(world.school, world.p1a.id, user=world.ade_user).id == cur.id
    assert engine.get_for_class(world.school, world.p1a.id, user=world.chi_user) is None
    assert engine.get_for_class(world.school, world.p1a.id, user=world.no_profile) is None
    assert engine.get_for_class(world.school, world.p1a.id, user=world.admin).id == cur.id


def test_summary_joins_timetable_and_curricula(engine, world, cur):
    engine.mark_week_complete(world.school, cur.id, 1, user=world.ade_user)
    rows = {r.subject_id: r for r in curricula_summary(world.school, world.p1.id, world.term1.id)}
    assert set(rows) == {world.math.id, world.english.id}

    math = rows[world.math.id]
    assert math.curriculum_id == cur.id
    assert math.status == "DRAFT"
    assert math.teacher_name == "Ade Okafor"
    assert (math.weeks_total, math.weeks_completed) == (2, 1)
    assert math.is_template_based is True
    assert math.periods_per_week == 3

    english = rows[world.english.id]
    assert english.curriculum_id is None and english.weeks_total == 0
    assert [t.id for t in english.teachers] == [world.bisi.id]


def test_summary_empty_without_timetable(world):
    assert curricula_summary(world.school, world.p1.id, world.term2.id) == []
