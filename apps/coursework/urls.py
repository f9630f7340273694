from django.urls import path
from .views import (
    RegisterView,
    LoginView,
    UserDetailView,
    CourseCreateView,
    CourseAssignmentCreateView,
    CourseEnrollmentCreateView,
    AssignmentSubmissionListCreateView,
    SubmissionDetailView,
    SubmissionGradeView,
)

urlpatterns = [
    # Users
    path('users', RegisterView.as_view(), name='user-register'),
    path('users/login', LoginView.as_view(), name='user-login'),
    path('users/<int:user_id>', UserDetailView.as_view(), name='user-detail'),

    # Courses
    path('courses', CourseCreateView.as_view(), name='course-create'),
    path('courses/<int:course_id>/assignments', CourseAssignmentCreateView.as_view(),
         name='course-assignment-create'),
    path('courses/<int:course_id>/enrollments', CourseEnrollmentCreateView.as_view(),
         name='course-enrollment-create'),

    # Submissions
    path('assignments/<int:assignment_id>/submissions', AssignmentSubmissionListCreateView.as_view(),
         name='assignment-submissions'),
    path('submissions/<int:submission_id>', SubmissionDetailView.as_view(), name='submission-detail'),
    path('submissions/<int:submission_id>/grade', SubmissionGradeView.as_view(), name='submission-grade'),
]
