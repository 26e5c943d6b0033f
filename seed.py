"""
Idempotent seed-скрипт.
Запуск:
  python seed.py --reset   # дропнуть и пересоздать БД + справочник + демо-школа
  python seed.py --demo    # справочник + демо-школа (недостающие записи)
  python seed.py           # только справочник предметов и шаблонов
"""
import argparse
from datetime import date

from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from blueprints.catalog.services import ReferenceCatalog, WeekIn
from models import (
    AcademicSession, ClassArm, ClassLevel, PeriodType, Role, School, SchoolType,
    Subject, Teacher, Term, TimetablePeriod, User,
)


# ---- справочник предметов ----
REFERENCE_SUBJECTS = [
    # общие
    ("ENG", "English Language", "CORE", ["PRIMARY", "SECONDARY"]),
    ("MTH", "Mathematics", "CORE", ["PRIMARY", "SECONDARY"]),
    ("CIV", "Civic Education", "CORE", ["PRIMARY", "SECONDARY"]),
    # primary
    ("BSC", "Basic Science", "CORE", ["PRIMARY"]),
    ("SST", "Social Studies", "CORE", ["PRIMARY"]),
    ("CCA", "Cultural & Creative Arts", "CORE", ["PRIMARY"]),
    ("PHE", "Physical & Health Education", "CORE", ["PRIMARY"]),
    ("RKS", "Religious Knowledge Studies", "CORE", ["PRIMARY"]),
    ("NLG", "Nigerian Language", "CORE", ["PRIMARY"]),
    ("BTC", "Basic Technology", "CORE", ["PRIMARY"]),
    # secondary, обязательные
    ("PHY", "Physics", "CORE", ["SECONDARY"]),
    ("CHM", "Chemistry", "CORE", ["SECONDARY"]),
    ("BIO", "Biology", "CORE", ["SECONDARY"]),
    ("LIT", "Literature in English", "CORE", ["SECONDARY"]),
    ("GEO", "Geography", "CORE", ["SECONDARY"]),
    ("HIS", "History", "CORE", ["SECONDARY"]),
    ("ECO", "Economics", "CORE", ["SECONDARY"]),
    ("GOV", "Government", "CORE", ["SECONDARY"]),
    ("AGR", "Agricultural Science", "CORE", ["SECONDARY"]),
    ("CRS", "Christian Religious Studies", "CORE", ["SECONDARY"]),
    ("IRS", "Islamic Religious Studies", "CORE", ["SECONDARY"]),
    # secondary, по выбору
    ("FMT", "Further Mathematics", "ELECTIVE", ["SECONDARY"]),
    ("CSC", "Computer Science", "ELECTIVE", ["SECONDARY"]),
    ("ACC", "Accounting", "ELECTIVE", ["SECONDARY"]),
    ("COM", "Commerce", "ELECTIVE", ["SECONDARY"]),
    ("FRN", "French", "ELECTIVE", ["SECONDARY"]),
    ("TDR", "Technical Drawing", "ELECTIVE", ["SECONDARY"]),
    ("FNA", "Fine Arts", "ELECTIVE", ["SECONDARY"]),
    ("MUS", "Music", "ELECTIVE", ["SECONDARY"]),
    ("FNT", "Food & Nutrition", "ELECTIVE", ["SECONDARY"]),
    ("HOM", "Home Economics", "ELECTIVE", ["SECONDARY"]),
]

# ---- пример шаблона: Mathematics, Primary 1, 1-я четверть ----
# (неделя, тема, подтемы, оценивание)
MATH_PRIMARY_1_TERM_1 = [
    (1, "Number Names and Numerals (1-10)",
     ["Counting 1-10", "Writing numerals 1-10", "Matching numbers to quantities"],
     "Oral counting and numeral writing exercise"),
    (2, "Number Names and Numerals (11-20)",
     ["Counting 11-20", "Writing numerals 11-20", "Number sequence"],
     "Written exercise on numerals 11-20"),
    (3, "Ordering Numbers (1-20)",
     ["Ascending order", "Descending order", "Before and after"],
     "Ordering numbers exercise"),
    (4, "Addition of Numbers (Sum up to 10)",
     ["Concept of addition", "Addition using objects", "Addition symbols"],
     "Addition exercise (sum up to 10)"),
    (5, "Addition of Numbers (Sum up to 20)",
     ["Adding with regrouping", "Mental addition strategies", "Word problems"],
     "Addition test (sum up to 20)"),
    (6, "Subtraction of Numbers (Within 10)",
     ["Concept of subtraction", "Subtraction using objects", "Subtraction symbols"],
     "Subtraction exercise (within 10)"),
    (7, "Mid-Term Review and Assessment",
     ["Review of numbers 1-20", "Review of addition", "Review of subtraction"],
     "Mid-term examination"),
    (8, "Subtraction of Numbers (Within 20)",
     ["Subtraction strategies", "Counting back", "Word problems"],
     "Subtraction test (within 20)"),
    (9, "Shapes (2D Shapes)",
     ["Circle", "Square", "Triangle", "Rectangle"],
     "Shape identification test"),
    (10, "Measurement (Length)",
     ["Long and short", "Tall and short", "Comparing lengths"],
     "Practical length comparison exercise"),
    (11, "Money (Nigerian Currency)",
     ["Identifying Nigerian coins", "Identifying Nigerian notes", "Simple buying and selling"],
     "Money identification exercise"),
    (12, "Time (Days of the Week)",
     ["Days of the week", "Yesterday, today, tomorrow", "Daily activities"],
     "Days of the week ordering test"),
    (13, "Revision and End of Term Examination",
     ["Comprehensive review", "Practice tests", "End of term examination"],
     "End of term examination"),
]


def get_or_create(model, defaults=None, **filters):
    inst = db.session.query(model).filter_by(**filters).first()
    if inst:
        return inst, False
    data = dict(filters)
    if defaults:
        data.update(defaults)
    inst = model(**data)
    db.session.add(inst)
    db.session.flush()
    return inst, True


# ---- справочник ----
def seed_reference_catalog(catalog: ReferenceCatalog | None = None) -> int:
    catalog = catalog or ReferenceCatalog()
    for code, name, category, school_types in REFERENCE_SUBJECTS:
        catalog.upsert_subject(code=code, name=name, category=category, school_types=school_types)
    catalog.upsert_template(
        subject_code="MTH",
        class_level="PRIMARY_1",
        term=1,
        description="Mathematics curriculum for Primary 1, First Term",
        weeks=[
            WeekIn(week_number=n, topic=topic, sub_topics=subs, assessment=assessment,
                   duration="5 periods of 30 minutes")
            for n, topic, subs, assessment in MATH_PRIMARY_1_TERM_1
        ],
    )
    return len(REFERENCE_SUBJECTS)


# ---- демо-школа ----
def seed_demo_school() -> School:
    school, _ = get_or_create(School, subdomain="demo",
                              defaults={"name": "Demo Primary School", "school_type": SchoolType.PRIMARY})
    session, _ = get_or_create(AcademicSession, school_id=school.id, name="2024/2025",
                               defaults={"start_date": date(2024, 9, 9), "end_date": date(2025, 7, 18)})
    term, _ = get_or_create(Term, academic_session_id=session.id, number=1,
                            defaults={"name": "First Term"})
    level, _ = get_or_create(ClassLevel, school_id=school.id, name="Primary 1",
                             defaults={"type": SchoolType.PRIMARY.value, "level": 1})
    arm_a, _ = get_or_create(ClassArm, class_level_id=level.id, name="A", defaults={"capacity": 30})
    arm_b, _ = get_or_create(ClassArm, class_level_id=level.id, name="B", defaults={"capacity": 30})

    ade, _ = get_or_create(Teacher, teacher_code="TCH-001",
                           defaults={"school_id": school.id, "first_name": "Ade", "last_name": "Okafor"})
    bisi, _ = get_or_create(Teacher, teacher_code="TCH-002",
                            defaults={"school_id": school.id, "first_name": "Bisi", "last_name": "Adeyemi"})

    math, _ = get_or_create(Subject, school_id=school.id, name="Mathematics",
                            school_type=SchoolType.PRIMARY.value, defaults={"code": "MTH"})
    eng, _ = get_or_create(Subject, school_id=school.id, name="English",
                           school_type=SchoolType.PRIMARY.value, defaults={"code": "ENG"})

    lessons = [
        (arm_a, "MONDAY", "08:00", "08:40", math, ade),
        (arm_a, "WEDNESDAY", "08:00", "08:40", math, ade),
        (arm_b, "TUESDAY", "09:00", "09:40", math, ade),
        (arm_a, "TUESDAY", "08:00", "08:40", eng, bisi),
        (arm_b, "THURSDAY", "08:00", "08:40", eng, bisi),
    ]
    for arm, day, start, end, subj, teacher in lessons:
        get_or_create(TimetablePeriod, term_id=term.id, class_arm_id=arm.id, day_of_week=day,
                      start_time=start, defaults={"end_time": end, "type": PeriodType.LESSON,
                                                  "subject_id": subj.id, "teacher_id": teacher.id})
    get_or_create(TimetablePeriod, term_id=term.id, class_arm_id=arm_a.id, day_of_week="MONDAY",
                  start_time="10:00", defaults={"end_time": "10:30", "type": PeriodType.BREAK})

    users = [
        ("admin@demo.school", Role.SCHOOL_ADMIN.value, None),
        ("ade@demo.school", Role.TEACHER.value, ade),
        ("bisi@demo.school", Role.TEACHER.value, bisi),
    ]
    for email, role, teacher in users:
        get_or_create(User, email=email, defaults={
            "password_hash": generate_password_hash("pass"),
            "role": role,
            "school_id": school.id,
            "teacher_id": teacher.id if teacher else None,
        })
    db.session.commit()
    return school


# ---- main ----
def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + full seed (demo)")
    parser.add_argument("--demo", action="store_true", help="also seed a demo school")
    parser.add_argument("--config", default=None, help="config name: dev/test/prod")
    args = parser.parse_args()

    app = create_app(args.config)
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        n = seed_reference_catalog()
        print(f"[seed] reference catalog: {n} subjects")
        if args.reset or args.demo:
            school = seed_demo_school()
            print(f"[seed] demo school: {school.subdomain}")


if __name__ == "__main__":
    main()
