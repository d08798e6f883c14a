from collections import Counter
from typing import Dict, Iterable, List, Optional

from ..config import settings


class GradeCalculator:
    """Letter grade rules: validation, grade points, GPA and distributions"""

    VALID_GRADES = ["A+", "A", "A-", "B+", "B", "B-", "C+", "C", "C-", "D+", "D", "D-", "F"]

    GRADE_POINTS = {
        "A+": 4.0, "A": 4.0, "A-": 3.7,
        "B+": 3.3, "B": 3.0, "B-": 2.7,
        "C+": 2.3, "C": 2.0, "C-": 1.7,
        "D+": 1.3, "D": 1.0, "D-": 0.7,
        "F": 0.0,
    }

    LETTER_BUCKETS = ["A", "B", "C", "D", "F"]
    FAILING_GRADE = "F"
    PENDING = "Pending"

    @classmethod
    def normalize(cls, grade: Optional[str]) -> Optional[str]:
        """Trim and upper-case a grade; blank strings clear the grade"""
        if grade is None:
            return None
        grade = grade.strip().upper()
        return grade or None

    @classmethod
    def is_valid_grade(cls, grade: Optional[str]) -> bool:
        return grade is not None and grade.strip().upper() in cls.GRADE_POINTS

    @classmethod
    def grade_points(cls, grade: Optional[str]) -> float:
        if grade is None:
            return 0.0
        return cls.GRADE_POINTS.get(grade.strip().upper(), 0.0)

    @classmethod
    def credits_for(cls, enrollment) -> int:
        course = enrollment.course
        if course is not None and course.credits:
            return course.credits
        return settings.default_course_credits

    @classmethod
    def calculate_gpa(cls, enrollments: Iterable) -> Optional[float]:
        """
        Credit weighted GPA over graded enrollments.

        Returns None when nothing is graded yet.
        """
        total_points = 0.0
        total_credits = 0
        for enrollment in enrollments:
            if enrollment.grade is None:
                continue
            credits = cls.credits_for(enrollment)
            total_points += cls.grade_points(enrollment.grade) * credits
            total_credits += credits

        if total_credits == 0:
            return None
        return round(total_points / total_credits, 2)

    @classmethod
    def credit_summary(cls, enrollments: Iterable) -> Dict[str, int]:
        total_credits = 0
        completed_credits = 0
        for enrollment in enrollments:
            credits = cls.credits_for(enrollment)
            total_credits += credits
            if enrollment.grade is not None:
                completed_credits += credits
        return {"total_credits": total_credits, "completed_credits": completed_credits}

    @classmethod
    def average_points(cls, grades: Iterable[str]) -> float:
        """Unweighted mean of grade points, 0.0 for an empty list"""
        points = [cls.grade_points(grade) for grade in grades]
        if not points:
            return 0.0
        return round(sum(points) / len(points), 2)

    @classmethod
    def pass_rate(cls, grades: List[str]) -> float:
        if not grades:
            return 0.0
        passed = len([grade for grade in grades if grade.upper() != cls.FAILING_GRADE])
        return round(passed / len(grades) * 100, 2)

    @classmethod
    def distribution(cls, grades: Iterable[str]) -> Dict[str, int]:
        """Count of every valid letter grade, including zeros"""
        counts = {grade: 0 for grade in cls.VALID_GRADES}
        for grade in grades:
            key = grade.upper()
            counts[key] = counts.get(key, 0) + 1
        return counts

    @classmethod
    def percentages(cls, counts: Dict[str, int], total: int) -> Dict[str, float]:
        return {
            grade: round(count / total * 100, 2) if total > 0 else 0.0
            for grade, count in counts.items()
        }

    @classmethod
    def bucket_distribution(cls, grades: Iterable[Optional[str]]) -> Dict[str, int]:
        """Group grades by letter (A+/A/A- -> A) with ungraded rows under Pending"""
        buckets = {letter: 0 for letter in cls.LETTER_BUCKETS}
        buckets[cls.PENDING] = 0
        for grade in grades:
            if grade is None:
                buckets[cls.PENDING] += 1
                continue
            letter = grade.upper()[:1]
            if letter in buckets:
                buckets[letter] += 1
        return buckets

    @classmethod
    def median_grade(cls, grades: List[str]) -> Optional[str]:
        """Median by grade rank; the better of the two middle grades wins on even counts"""
        if not grades:
            return None
        ranked = sorted(grades, key=lambda grade: cls.VALID_GRADES.index(grade.upper()))
        return ranked[(len(ranked) - 1) // 2].upper()

    @classmethod
    def mode_grade(cls, grades: List[str]) -> Optional[str]:
        """Most frequent grade, ties resolved towards the better grade"""
        if not grades:
            return None
        counts = Counter(grade.upper() for grade in grades)
        return min(counts, key=lambda grade: (-counts[grade], cls.VALID_GRADES.index(grade)))

    @classmethod
    def highest_grade(cls, grades: List[str]) -> Optional[str]:
        if not grades:
            return None
        return min((grade.upper() for grade in grades), key=cls.VALID_GRADES.index)

    @classmethod
    def lowest_grade(cls, grades: List[str]) -> Optional[str]:
        if not grades:
            return None
        return max((grade.upper() for grade in grades), key=cls.VALID_GRADES.index)
