"""
Demo data for local development (enabled with SEED_DEMO_DATA=true).
"""

from datetime import date
from typing import List

from src.kernel.models.project import Project

DEMO_STUDENTS = ("EST-001", "EST-002", "EST-003")


def demo_projects() -> List[Project]:
    """Two active projects with three students and one failing score each."""
    projects = [
        Project(
            id="PROY-001",
            title="Conservation of Endemic Species",
            description="Protecting endangered species in the Amazon basin",
            faculty="Environmental Sciences",
            budget=50_000_000,
            start_date=date(2024, 1, 15),
        ),
        Project(
            id="PROY-002",
            title="Renewable Energy for Isolated Communities",
            description="Solar installations for remote Amazon communities",
            faculty="Engineering",
            budget=75_000_000,
            start_date=date(2024, 2, 1),
        ),
    ]
    for project in projects:
        for student_id in DEMO_STUDENTS:
            project.add_student(student_id)
        for student_id, score in zip(DEMO_STUDENTS, (85, 45, 90)):
            project.add_evaluation(student_id, score)
    return projects
