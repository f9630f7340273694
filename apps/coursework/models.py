from django.db import models
from django.contrib.auth.models import AbstractUser, UserManager as BaseUserManager
from django.core.validators import MinValueValidator
from django.utils import timezone


class UserManager(BaseUserManager):
    """Superusers created from the command line get the admin role."""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault('role', User.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    STUDENT = 'student'
    INSTRUCTOR = 'instructor'
    ADMIN = 'admin'
    ROLE_CHOICES = [
        (STUDENT, 'Student'),
        (INSTRUCTOR, 'Instructor'),
        (ADMIN, 'Admin'),
    ]

    # Set once at registration, never updated through the API
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=STUDENT)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = UserManager()

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email'], name='users_email_4b85f2_idx'),
        ]


class Course(models.Model):
    title = models.CharField(max_length=255)
    instructor = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='taught_courses'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'courses'
        ordering = ['id']

    def __str__(self):
        return self.title


class Enrollment(models.Model):
    """
    Membership of a student in a course.

    Submission creation is gated on a row existing here for the
    assignment's course.
    """
    student = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'enrollments'
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'course'],
                name='unique_student_course_enrollment'
            )
        ]

    def __str__(self):
        return f"{self.student_id} -> {self.course_id}"


class Assignment(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    due_at = models.DateTimeField(null=True, blank=True)
    # No FK constraint: the ownership chain may be broken by an external
    # delete and the resolver reports that as not-found.
    course = models.ForeignKey(
        Course,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name='assignments'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'assignments'
        ordering = ['id']
        indexes = [
            models.Index(fields=['course'], name='assignments_course__6a1c0e_idx'),
        ]

    def __str__(self):
        return self.title


class Submission(models.Model):
    """
    A student's answer to an assignment.

    Content belongs to the student, grade belongs to the course instructor.
    The two are written through separate endpoints with separate field
    allow-lists.
    """
    assignment = models.ForeignKey(
        Assignment,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name='submissions'
    )
    student = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='submissions'
    )
    content = models.TextField()
    grade = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )
    submitted_at = models.DateTimeField(default=timezone.now)
    graded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'submissions'
        # Stable windows for the paginated listing
        ordering = ['id']
        indexes = [
            models.Index(fields=['assignment', 'id'], name='submissions_assignm_3f0d2b_idx'),
            models.Index(fields=['student'], name='submissions_student_9c41e7_idx'),
        ]

    def __str__(self):
        return f"Submission {self.pk} by {self.student_id}"
