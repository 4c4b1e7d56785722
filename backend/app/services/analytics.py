"""
Analytics Service - academic standing classification and dashboard figures.

Standing policy, evaluated on float(cgpa) and the integer credit load:
1. Dean's List:     cgpa >= 3.75 and credits >= 12
2. Probation:       cgpa < 2.00 (metric count)
                    cgpa < 2.00 and credits > 0 (performance segment)
3. Good Standing:   cgpa >= 2.00 and (cgpa < 3.75 or credits < 12)

The two probation rules differ: a student with cgpa < 2.00 and no credits
counts towards probationCount but is listed in none of the performance
segments.

The engine holds no state; every call re-reads the store.
"""

import math
import time
from typing import Iterable, List, Optional

from app.schemas import DashboardMetrics, PerformanceData, StudentWithSubjects
from app.logging_config import get_logger, log_with_context

logger = get_logger("analytics")

# ──────────────────────────────────────────────────────────────
# Standing thresholds
# ──────────────────────────────────────────────────────────────
DEANS_LIST_MIN_CGPA = 3.75
DEANS_LIST_MIN_CREDITS = 12
PROBATION_CGPA_BELOW = 2.00

# Filter value meaning "every intake"
ALL_SEMESTERS = "all"

DEANS_LIST = "deans_list"
PROBATION = "probation"
GOOD_STANDING = "good_standing"


def parse_cgpa(value) -> float:
    """
    Parse a CGPA decimal string. Non-numeric text yields NaN, which fails
    every threshold comparison.
    """
    try:
        return float(value)
    except (TypeError, ValueError):
        log_with_context(logger, "WARNING",
            "Non-numeric CGPA treated as NaN: {!r}".format(value))
        return math.nan


def is_deans_list(cgpa: float, credits: int) -> bool:
    return cgpa >= DEANS_LIST_MIN_CGPA and credits >= DEANS_LIST_MIN_CREDITS


def is_probation(cgpa: float) -> bool:
    """Probation as counted by the dashboard metrics (no credit condition)."""
    return cgpa < PROBATION_CGPA_BELOW


def is_probation_segment(cgpa: float, credits: int) -> bool:
    """Probation as listed by the performance segmentation (needs credits)."""
    return cgpa < PROBATION_CGPA_BELOW and credits > 0


def is_good_standing(cgpa: float, credits: int) -> bool:
    return cgpa >= PROBATION_CGPA_BELOW and (
        cgpa < DEANS_LIST_MIN_CGPA or credits < DEANS_LIST_MIN_CREDITS
    )


def classify_standing(student: StudentWithSubjects) -> Optional[str]:
    """
    Performance segment of a student: DEANS_LIST, PROBATION, GOOD_STANDING,
    or None for a zero-credit student below 2.00 (or a NaN CGPA).
    """
    cgpa = parse_cgpa(student.cgpa)
    if is_deans_list(cgpa, student.credits):
        return DEANS_LIST
    if is_probation_segment(cgpa, student.credits):
        return PROBATION
    if is_good_standing(cgpa, student.credits):
        return GOOD_STANDING
    return None


def round_half_up(value: float, places: int = 2) -> float:
    """Round like a dashboard display: halves go up, not to even."""
    if math.isnan(value):
        return value
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def _candidates(store, semester: Optional[str]) -> List[StudentWithSubjects]:
    """All students, or one intake when a semester other than 'all' is given."""
    if semester and semester != ALL_SEMESTERS:
        return store.get_students_by_semester(semester)
    return store.get_all_students()


def compute_metrics(students: Iterable[StudentWithSubjects]) -> DashboardMetrics:
    """
    Aggregate figures over a student set.

    averageCGPA is the mean rounded half-up to 2 places, and 0 for an
    empty set.
    """
    students = list(students)
    cgpas = [parse_cgpa(s.cgpa) for s in students]

    total_students = len(students)
    deans_list_count = sum(
        1 for s, cgpa in zip(students, cgpas) if is_deans_list(cgpa, s.credits)
    )
    probation_count = sum(1 for cgpa in cgpas if is_probation(cgpa))
    average_cgpa = sum(cgpas) / total_students if total_students > 0 else 0

    return DashboardMetrics(
        total_students=total_students,
        deans_list_count=deans_list_count,
        probation_count=probation_count,
        average_cgpa=round_half_up(average_cgpa),
    )


def compute_performance(students: Iterable[StudentWithSubjects]) -> PerformanceData:
    """Split a student set into Dean's List, probation and good-standing lists."""
    segments = {DEANS_LIST: [], PROBATION: [], GOOD_STANDING: []}
    for student in students:
        standing = classify_standing(student)
        if standing is not None:
            segments[standing].append(student)

    return PerformanceData(
        deans_list_students=segments[DEANS_LIST],
        probation_students=segments[PROBATION],
        good_standing_students=segments[GOOD_STANDING],
    )


def get_dashboard_metrics(store, semester: Optional[str] = None) -> DashboardMetrics:
    """
    Dashboard metrics for all students, or for one intake.

    Args:
        store: RecordStore to read from
        semester: Intake key; None, "" or "all" means every student
    """
    start_time = time.time()
    metrics = compute_metrics(_candidates(store, semester))

    log_with_context(logger, "INFO",
        "Dashboard metrics computed: {} students, average CGPA {}".format(
            metrics.total_students, metrics.average_cgpa),
        context={"semester": semester or ALL_SEMESTERS},
        extra_data={
            "deans_list": metrics.deans_list_count,
            "probation": metrics.probation_count,
            "duration_ms": round((time.time() - start_time) * 1000, 2)
        })
    return metrics


def get_dashboard_performance(store, semester: Optional[str] = None) -> PerformanceData:
    """
    Students segmented by standing, for all students or one intake.

    Each student is in at most one list.
    """
    performance = compute_performance(_candidates(store, semester))

    log_with_context(logger, "INFO",
        "Dashboard performance computed",
        context={"semester": semester or ALL_SEMESTERS},
        extra_data={
            "deans_list": len(performance.deans_list_students),
            "probation": len(performance.probation_students),
            "good_standing": len(performance.good_standing_students)
        })
    return performance
