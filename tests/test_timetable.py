from __future__ import annotations

from blueprints.timetable.services import find_subject, resolve_subjects
from extensions import db
from models import PeriodType, TimetablePeriod


def test_level_subjects_aggregate_over_arms(world):
    subjects = resolve_subjects(world.school.id, world.p1.id, world.term1.id)
    by_id = {s.subject_id: s for s in subjects}
    assert set(by_id) == {world.math.id, world.english.id}

    math = by_id[world.math.id]
    assert math.subject_name == "Mathematics"
    assert math.subject_code == "MTH"
    assert math.periods_per_week == 3
    # три урока у одного преподавателя: одна запись
    assert [(t.id, t.name) for t in math.teachers] == [(world.ade.id, "Ade Okafor")]
    assert by_id[world.english.id].has_teacher(world.bisi.id)
    assert not by_id[world.english.id].has_teacher(world.ade.id)


def test_breaks_and_other_terms_are_ignored(world):
    assert resolve_subjects(world.school.id, world.p1.id, world.term2.id) == []
    assert resolve_subjects(world.school.id, world.p1.id, "no-such-term") == []
    assert resolve_subjects(world.school.id, None, world.term1.id) == []


def test_raw_id_is_part_of_lookup(world):
    # старая запись: id уровня лежит в поле секции
    db.session.add(TimetablePeriod(term_id=world.term1.id, class_arm_id=world.p1.id, day_of_week="FRIDAY",
                                   start_time="11:00", end_time="11:40", type=PeriodType.LESSON,
                                   subject_id=world.art.id, teacher_id=world.chi.id))
    db.session.commit()
    art = find_subject(resolve_subjects(world.school.id, world.p1.id, world.term1.id), world.art.id)
    assert art is not None and art.periods_per_week == 1


def test_flat_class_periods_by_class_id(world):
    db.session.add(TimetablePeriod(term_id=world.term1.id, class_id=world.diploma.id, day_of_week="MONDAY",
                                   start_time="08:00", end_time="09:00", type=PeriodType.LESSON,
                                   subject_id=world.english.id))
    db.session.commit()
    subjects = resolve_subjects(world.school.id, world.diploma.id, world.term1.id)
    assert len(subjects) == 1
    # урок без преподавателя не ломает агрегацию
    assert subjects[0].teachers == []


def test_other_school_sees_nothing(world):
    # чужой уровень и чужая четверть не раскрывают расписание
    assert resolve_subjects(world.other_school.id, world.p1.id, world.term1.id) == []
    assert resolve_subjects(world.school.id, world.p1.id, world.other_term.id) == []
