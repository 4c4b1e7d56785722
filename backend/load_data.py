"""
Data Loader Script - replays the student data CSV into a running service.

Parses the CSV with the service's own ingestion parser, then creates each
student and each subject through the public API.

Usage:
    python load_data.py                                       # Default URL and CSV
    python load_data.py http://localhost:8000                 # Custom API URL
    python load_data.py http://backend:8000 data/students.csv # Custom CSV
"""

import os
import sys

import httpx

from app.services.ingestion import IngestionError, STUDENT_DATA_PATH, parse_student_csv


def load_records(client: httpx.Client, students, subjects) -> dict:
    """
    POST students, then subjects, with `client` (base_url must point at
    the service). Returns counts and the failed requests.
    """
    summary = {"students": 0, "subjects": 0, "errors": 0, "details": []}

    for student in students:
        resp = client.post("/api/students", json=student.model_dump(mode="json", by_alias=True, exclude_none=True))
        if resp.status_code == 201:
            summary["students"] += 1
        else:
            summary["errors"] += 1
            summary["details"].append({"student_id": student.id, "status": resp.status_code, "body": resp.text})

    for subject in subjects:
        resp = client.post(
            f"/api/students/{subject.student_id}/subjects",
            json=subject.model_dump(mode="json", by_alias=True, exclude={"student_id"}, exclude_none=True)
        )
        if resp.status_code == 201:
            summary["subjects"] += 1
        else:
            summary["errors"] += 1
            summary["details"].append({"student_id": subject.student_id, "subject": subject.code,
                                       "status": resp.status_code, "body": resp.text})

    return summary


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")
    data_file = sys.argv[2] if len(sys.argv) > 2 else STUDENT_DATA_PATH

    print(f"Loading data from: {data_file}")
    try:
        students, subjects = parse_student_csv(data_file)
    except IngestionError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Found {len(students)} students and {len(subjects)} subjects")
    print(f"Sending to: {api_url}")
    print()

    try:
        with httpx.Client(base_url=api_url, timeout=30.0) as client:
            summary = load_records(client, students, subjects)
    except httpx.HTTPError as e:
        print(f"Error: could not reach {api_url}: {e}")
        sys.exit(1)

    print("=" * 60)
    print("LOAD SUMMARY")
    print("=" * 60)
    print(f"  Students Created:  {summary['students']}")
    print(f"  Subjects Created:  {summary['subjects']}")
    print(f"  Errors:            {summary['errors']}")
    print("=" * 60)

    for d in summary["details"]:
        print(f"  ❌ {d.get('student_id')} {d.get('subject', '')}: HTTP {d['status']} {d['body']}")

    if summary["errors"]:
        sys.exit(1)
    print()
    print("✅ Data loading complete!")


if __name__ == "__main__":
    main()
