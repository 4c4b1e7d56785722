"""Unit tests for CSV ingestion and startup seeding."""

import os

import pytest

from app.services.ingestion import IngestionError, parse_student_csv, seed_store

HEADER = "id,name,email,intake,programme,cgpa,credits,subject_code,subject_name,grade,status\n"

SAMPLE_DATA_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "data", "students.csv"
)


def _write_csv(tmp_path, body, header=HEADER):
    path = tmp_path / "students.csv"
    path.write_text(header + body, encoding="utf-8")
    return str(path)


def test_parse_student_csv(tmp_path):
    """One row per student/subject pair; student identity repeats."""
    path = _write_csv(tmp_path, (
        "A0001,Anya,A0001@uow.edu.my,Jun-25,BIS,3.50,18,CSIT111,Programming,A-,pass\n"
        "A0001,Anya,A0001@uow.edu.my,Jun-25,BIS,3.50,18,ISIT111,Foundations,,in-progress\n"
        "A0002,Austin,A0002@uow.edu.my,Oct-25,BIS,2.80,,,,,\n"
    ))

    students, subjects = parse_student_csv(path)

    assert [s.id for s in students] == ["A0001", "A0002"]
    assert students[0].cgpa == "3.50"
    assert students[0].credits == 18
    # Blank credits become 0
    assert students[1].credits == 0

    assert [(s.code, s.student_id) for s in subjects] == [("CSIT111", "A0001"), ("ISIT111", "A0001")]
    assert subjects[0].grade == "A-"
    assert subjects[1].grade is None


def test_last_row_wins_but_first_position_kept(tmp_path):
    path = _write_csv(tmp_path, (
        "A0001,Old Name,A0001@uow.edu.my,Jun-25,BIS,3.00,12,,,,\n"
        "A0002,Austin,A0002@uow.edu.my,Jun-25,BIS,2.80,15,,,,\n"
        "A0001,New Name,A0001@uow.edu.my,Jun-25,BIS,3.20,15,,,,\n"
    ))

    students, subjects = parse_student_csv(path)

    assert [s.id for s in students] == ["A0001", "A0002"]
    assert students[0].name == "New Name"
    assert students[0].cgpa == "3.20"
    assert subjects == []


def test_optional_columns_and_defaults(tmp_path):
    """Only the required columns present; subject defaults fill in."""
    path = _write_csv(
        tmp_path,
        " A0001 , Anya ,A0001@uow.edu.my,Jun-25,BIS,3.50\n",
        header="id,name,email,intake,programme,cgpa\n",
    )

    students, subjects = parse_student_csv(path)

    assert students[0].id == "A0001"
    assert students[0].name == "Anya"
    assert students[0].credits == 0
    assert subjects == []


def test_subject_status_and_name_defaults(tmp_path):
    path = _write_csv(tmp_path, "A0001,Anya,A0001@uow.edu.my,Jun-25,BIS,3.50,18,CSIT111,,,\n")

    _, subjects = parse_student_csv(path)

    assert subjects[0].name == "CSIT111"
    assert subjects[0].status == "in-progress"


def test_missing_file_raises(tmp_path):
    with pytest.raises(IngestionError):
        parse_student_csv(str(tmp_path / "missing.csv"))


def test_missing_required_column_raises(tmp_path):
    path = _write_csv(tmp_path, "A0001,Anya,Jun-25\n", header="id,name,intake\n")

    with pytest.raises(IngestionError, match="email"):
        parse_student_csv(path)


def test_header_only_raises(tmp_path):
    path = _write_csv(tmp_path, "")

    with pytest.raises(IngestionError):
        parse_student_csv(path)


def test_invalid_cgpa_raises(tmp_path):
    path = _write_csv(tmp_path, "A0001,Anya,A0001@uow.edu.my,Jun-25,BIS,abc,18,,,,\n")

    with pytest.raises(IngestionError, match="line 2"):
        parse_student_csv(path)


@pytest.mark.parametrize("credits", ["12.9", "abc", "-3"])
def test_invalid_credits_raise(tmp_path, credits):
    """Credits are never truncated or zeroed; only a blank means 0."""
    path = _write_csv(tmp_path, (
        "A0001,Anya,A0001@uow.edu.my,Jun-25,BIS,3.50,18,,,,\n"
        "A0002,Austin,A0002@uow.edu.my,Jun-25,BIS,2.80,{},,,,\n".format(credits)
    ))

    with pytest.raises(IngestionError, match="line 3"):
        parse_student_csv(path)


def test_seed_store_falls_back_on_bad_credits(store, tmp_path):
    path = _write_csv(tmp_path, "A0003,Zendaya,A0003@uow.edu.my,Jun-25,BCS,3.85,12.9,,,,\n")

    assert seed_store(store, path) is False
    assert store.get_student("A0003") is None


def test_sample_data_file_parses():
    students, subjects = parse_student_csv(SAMPLE_DATA_PATH)

    assert len(students) == 7
    assert len(subjects) == 8
    assert students[0].id == "A0001"


def test_seed_store_from_csv(store, tmp_path):
    path = _write_csv(tmp_path, (
        "A0001,Anya,A0001@uow.edu.my,Jun-25,BIS,3.50,18,CSIT111,Programming,A-,pass\n"
        "A0003,Zendaya,A0003@uow.edu.my,Jun-25,BCS,3.85,16,,,,\n"
    ))

    assert seed_store(store, path) is True
    assert [s.id for s in store.get_all_students()] == ["A0001", "A0003"]
    assert [s.code for s in store.get_student("A0001").subjects] == ["CSIT111"]


def test_seed_store_falls_back_on_bad_file(store, tmp_path):
    """The store is never left empty after a failed load."""
    assert seed_store(store, str(tmp_path / "missing.csv")) is False
    assert [s.id for s in store.get_all_students()] == ["A0001", "A0002"]
    assert store.get_student("A0001").name == "Anya Taylor-Joy"
