"""
Ownership chain lookups: Submission -> Assignment -> Course -> instructor.

Every hop is a primary-key point read. A miss at any hop yields None and
callers cannot tell which hop was missing. Nothing is cached; each call
re-walks the chain.
"""
from .models import Assignment, Course, Enrollment, Submission


def _column(model, pk, column):
    if pk is None:
        return None
    return model.objects.filter(pk=pk).values_list(column, flat=True).first()


def resolve_course(assignment_id):
    """Course id of an assignment, or None."""
    return _column(Assignment, assignment_id, 'course_id')


def resolve_instructor(submission_id=None, assignment_id=None, course_id=None):
    """
    Walk the chain from whichever link is given and return the course's
    instructor id, or None if any link is missing.
    """
    if submission_id is not None:
        assignment_id = _column(Submission, submission_id, 'assignment_id')
        if assignment_id is None:
            return None
    if assignment_id is not None:
        course_id = resolve_course(assignment_id)
        if course_id is None:
            return None
    return _column(Course, course_id, 'instructor_id')


def submission_owner(submission_id):
    """Student id of a submission, or None."""
    return _column(Submission, submission_id, 'student_id')


def is_enrolled(student_id, course_id):
    return Enrollment.objects.filter(
        student_id=student_id,
        course_id=course_id
    ).exists()
