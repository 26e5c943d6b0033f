from __future__ import annotations
from datetime import date
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import (
    AcademicSession, ClassArm, ClassLevel, PeriodType, ReferenceCurriculum, ReferenceSubject,
    ReferenceWeek, Role, School, SchoolClass, SchoolType, Subject, Teacher, Term,
    TimetablePeriod, User,
)


@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def _add(obj):
    db.session.add(obj)
    db.session.flush()
    return obj


def _user(email, role, school=None, teacher=None):
    return _add(User(
        email=email,
        password_hash=generate_password_hash("pass"),
        role=role,
        school_id=school.id if school else None,
        teacher_id=teacher.id if teacher else None,
    ))


def _lesson(term, arm_id, day, start, subject, teacher, **kw):
    return _add(TimetablePeriod(
        term_id=term.id, class_arm_id=arm_id, day_of_week=day, start_time=start,
        end_time=kw.pop("end", "08:40"), type=kw.pop("type", PeriodType.LESSON),
        subject_id=subject.id if subject else None, teacher_id=teacher.id if teacher else None, **kw,
    ))


@pytest.fixture()
def world(app):
    """Школа с уровнями, секциями, расписанием, преподавателями и справочником."""
    w = SimpleNamespace()
    w.school = _add(School(name="Greenfield", subdomain="greenfield", school_type=SchoolType.PRIMARY))
    w.other_school = _add(School(name="Hilltop", subdomain="hilltop", school_type=SchoolType.SECONDARY))

    session = _add(AcademicSession(school_id=w.school.id, name="2024/2025",
                                   start_date=date(2024, 9, 9), end_date=date(2025, 7, 18)))
    w.term1 = _add(Term(academic_session_id=session.id, name="First Term", number=1))
    w.term2 = _add(Term(academic_session_id=session.id, name="Second Term", number=2))
    other_session = _add(AcademicSession(school_id=w.other_school.id, name="2024/2025"))
    w.other_term = _add(Term(academic_session_id=other_session.id, name="First Term", number=1))

    w.p1 = _add(ClassLevel(school_id=w.school.id, name="Primary 1", type="PRIMARY", level=1))
    w.p1a = _add(ClassArm(class_level_id=w.p1.id, name="A"))
    w.p1b = _add(ClassArm(class_level_id=w.p1.id, name="B"))
    w.jss2 = _add(ClassLevel(school_id=w.school.id, name="JSS 2", type="SECONDARY", level=8))
    w.jss2a = _add(ClassArm(class_level_id=w.jss2.id, name="A"))
    w.other_level = _add(ClassLevel(school_id=w.other_school.id, name="Primary 1", type="PRIMARY", level=1))
    w.other_arm = _add(ClassArm(class_level_id=w.other_level.id, name="A"))

    w.diploma = _add(SchoolClass(school_id=w.school.id, name="Diploma Year 1", type="TERTIARY"))
    w.legacy_class = _add(SchoolClass(school_id=w.school.id, name="Primary 1 (old)", type="PRIMARY",
                                      class_level="Primary 1"))

    w.math = _add(Subject(school_id=w.school.id, name="Mathematics", code="MTH", school_type="PRIMARY"))
    w.english = _add(Subject(school_id=w.school.id, name="English", code="ENG", school_type="PRIMARY"))
    w.art = _add(Subject(school_id=w.school.id, name="Art", code="ART", school_type="PRIMARY"))
    w.civics = _add(Subject(school_id=w.school.id, name="Civics", code="CVX", school_type="SECONDARY"))

    w.ade = _add(Teacher(school_id=w.school.id, teacher_code="TCH-001", first_name="Ade", last_name="Okafor"))
    w.bisi = _add(Teacher(school_id=w.school.id, teacher_code="TCH-002", first_name="Bisi", last_name="Adeyemi"))
    w.chi = _add(Teacher(school_id=w.school.id, teacher_code="TCH-003", first_name="Chi", last_name="Eze"))
    w.stranger = _add(Teacher(school_id=w.other_school.id, teacher_code="TCH-900", first_name="Sam"))

    # расписание 1-й четверти Primary 1
    _lesson(w.term1, w.p1a.id, "MONDAY", "08:00", w.math, w.ade)
    _lesson(w.term1, w.p1a.id, "WEDNESDAY", "08:00", w.math, w.ade)
    _lesson(w.term1, w.p1b.id, "TUESDAY", "09:00", w.math, w.ade)
    _lesson(w.term1, w.p1a.id, "TUESDAY", "08:00", w.english, w.bisi)
    _lesson(w.term1, w.p1a.id, "MONDAY", "10:00", None, None, type=PeriodType.BREAK)
    # 2-я четверть JSS 2
    _lesson(w.term2, w.jss2a.id, "MONDAY", "08:00", w.civics, w.ade)
    _lesson(w.term2, w.jss2a.id, "FRIDAY", "08:00", w.math, w.bisi)

    w.admin = _user("admin@greenfield.test", Role.SCHOOL_ADMIN.value, w.school)
    w.super = _user("root@platform.test", Role.SUPER_ADMIN.value)
    w.ade_user = _user("ade@greenfield.test", Role.TEACHER.value, w.school, w.ade)
    w.bisi_user = _user("bisi@greenfield.test", Role.TEACHER.value, w.school, w.bisi)
    w.chi_user = _user("chi@greenfield.test", Role.TEACHER.value, w.school, w.chi)
    w.no_profile = _user("nobody@greenfield.test", Role.TEACHER.value, w.school)
    w.other_user = _user("sam@hilltop.test", Role.TEACHER.value, w.other_school, w.stranger)

    # справочник: Mathematics / PRIMARY_1 / 1-я четверть, две недели
    ref_math = _add(ReferenceSubject(code="MTH", name="Mathematics", category="CORE",
                                     school_types=["PRIMARY", "SECONDARY"]))
    _add(ReferenceSubject(code="FMT", name="Further Mathematics", category="ELECTIVE",
                          school_types=["SECONDARY"]))
    w.ref_math = ref_math
    w.template = _add(ReferenceCurriculum(subject_id=ref_math.id, class_level="PRIMARY_1", term=1,
                                          description="Sample"))
    _add(ReferenceWeek(curriculum_id=w.template.id, week_number=2, topic="Addition",
                       objectives=["Add within 10"], assessment="Addition quiz"))
    _add(ReferenceWeek(curriculum_id=w.template.id, week_number=1, topic="Counting",
                       sub_topics=["1-10"], objectives=["Count to 10"]))
    db.session.commit()
    return w


def login(client, email, password="pass"):
    r = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.get_json()
    return r
