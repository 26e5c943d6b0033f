from __future__ import annotations
import pytest

from blueprints.catalog.levels import ClassLevelCodes
from blueprints.catalog.services import ReferenceCatalog, WeekIn
from errors import NotFound, ValidationFailed
from models import ReferenceCurriculum, SchoolType, Subject


# ---------- class level codes ----------
@pytest.mark.parametrize("name,stype,code", [
    ("Primary 1", "PRIMARY", "PRIMARY_1"),
    ("primary 1", "PRIMARY", "PRIMARY_1"),
    ("Primary1", "PRIMARY", "PRIMARY_1"),
    ("  jss   2 ", "SECONDARY", "JSS_2"),
    ("SS 3", SchoolType.SECONDARY, "SS_3"),
])
def test_code_for_known_levels(name, stype, code):
    assert ClassLevelCodes().code_for(name, stype) == code


def test_code_for_requires_matching_tier():
    codes = ClassLevelCodes()
    assert codes.code_for("Primary 1", "SECONDARY") is None
    assert codes.code_for("Year 7", "SECONDARY") is None
    assert codes.code_for("", "PRIMARY") is None


def test_extra_codes_from_config():
    codes = ClassLevelCodes.from_config({"CLASS_LEVEL_CODES": {"KG_1": {"name": "KG 1", "school_type": "NURSERY"}}})
    assert codes.code_for("kg1", "NURSERY") == "KG_1"
    assert codes.name_for("KG_1") == "KG 1"
    assert "PRIMARY_1" in codes.codes()


# ---------- subject / template matching ----------
def test_match_prefers_exact_name_over_longer(world):
    names = [s.name for s in ReferenceCatalog().match_subjects("mathematics")]
    assert names == ["Mathematics", "Further Mathematics"]


def test_find_template_by_level_name(world):
    tpl = ReferenceCatalog().find_template("Mathematics", "Primary 1", "PRIMARY", 1)
    assert tpl.id == world.template.id
    assert [w.topic for w in tpl.weeks] == ["Counting", "Addition"]
    assert ReferenceCatalog().find_template("Mathematics", "Primary 1", "PRIMARY", 2) is None
    assert ReferenceCatalog().find_template("Mathematics", "Reception", "PRIMARY", 1) is None


def test_school_subject_falls_back_to_code(world):
    maths = Subject(school_id=world.school.id, name="Numeracy", code="MTH")
    tpl = ReferenceCatalog().template_for_school_subject(maths, world.p1, 1)
    assert tpl is not None and tpl.id == world.template.id


def test_school_subject_without_level_code(world):
    assert ReferenceCatalog().template_for_school_subject(world.math, world.diploma, 1) is None


def test_list_subjects_filters_by_school_type(world):
    catalog = ReferenceCatalog()
    assert [s.code for s in catalog.list_subjects("PRIMARY")] == ["MTH"]
    assert {s.code for s in catalog.list_subjects()} == {"MTH", "FMT"}
    assert [s.code for s in catalog.list_subjects(category="ELECTIVE")] == ["FMT"]


def test_list_templates(world):
    catalog = ReferenceCatalog()
    assert [t.id for t in catalog.list_templates(class_level="PRIMARY_1", term=1)] == [world.template.id]
    assert catalog.list_templates(school_type="NURSERY") == []


# ---------- upsert ----------
def test_upsert_template_replaces_weeks(world):
    catalog = ReferenceCatalog()
    tpl = catalog.upsert_template(subject_code="MTH", class_level="PRIMARY_1", term=1, weeks=[
        WeekIn(week_number=1, topic="Numbers"),
        WeekIn(week_number=2, topic="Addition"),
        WeekIn(week_number=3, topic="Subtraction"),
    ])
    assert tpl.id == world.template.id
    assert [w.topic for w in tpl.weeks] == ["Numbers", "Addition", "Subtraction"]
    assert ReferenceCurriculum.query.count() == 1


def test_upsert_template_rejects_duplicate_weeks(world):
    with pytest.raises(ValidationFailed):
        ReferenceCatalog().upsert_template(subject_code="MTH", class_level="PRIMARY_2", term=1, weeks=[
            WeekIn(week_number=1, topic="A"), WeekIn(week_number=1, topic="B"),
        ])


def test_upsert_template_unknown_subject(world):
    with pytest.raises(NotFound):
        ReferenceCatalog().upsert_template(subject_code="XXX", class_level="PRIMARY_1", term=1, weeks=[])


def test_upsert_subject_is_idempotent(world):
    catalog = ReferenceCatalog()
    catalog.upsert_subject(code="ENG", name="English Language", school_types=["PRIMARY"], category="CORE")
    catalog.upsert_subject(code="ENG", name="English Language", school_types=["PRIMARY", "SECONDARY"])
    eng = catalog.get_subject_by_code("ENG")
    assert eng.school_types == ["PRIMARY", "SECONDARY"]
    assert len(catalog.match_subjects("English")) == 1


def test_term_arg_parsing(app):
    from blueprints.catalog.routes import _term_arg
    with app.test_request_context("/?term=2"):
        assert _term_arg() == 2
    with app.test_request_context("/?term=x"):
        with pytest.raises(ValidationFailed) as ei:
            _term_arg()
    assert ei.value.details == {"term": "x"}
    # исходный ValueError не тянется в трассировку
    assert ei.value.__suppress_context__ is True and ei.value.__cause__ is None
