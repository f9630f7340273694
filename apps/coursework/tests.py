"""
Unit and API tests for coursework access control and listing.

Tests On:
- Authorization gate decisions per action and role
- Ownership chain resolution, including broken chains
- Page math and navigation links
- Submission endpoints: status codes and response shapes
- User and course endpoints
- Error rendering
"""
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import IntegrityError
from django.test import SimpleTestCase, TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase
from rest_framework import status

from .access import Action, AuthenticatedActor, Decision, authorize
from .exceptions import (
    INVALID_INPUT_MESSAGE,
    INVALID_ROLE_MESSAGE,
    NOT_FOUND_MESSAGE,
    SERVER_ERROR_MESSAGE,
    coursework_exception_handler,
    validation_message,
)
from .models import Course, Enrollment, Assignment, Submission
from .ownership import resolve_course, resolve_instructor, submission_owner, is_enrolled
from .pagination import PageWindow, parse_page

User = get_user_model()


class CourseworkFixtureMixin:
    """
    Two instructors, two students and an admin. instructor_a teaches the
    course, student_a is enrolled and owns the submission.
    """

    def setUp(self):
        self.admin = User.objects.create_user(
            username='admin', password='pass12345', role=User.ADMIN
        )
        self.instructor_a = User.objects.create_user(
            username='instructor_a', password='pass12345', role=User.INSTRUCTOR
        )
        self.instructor_b = User.objects.create_user(
            username='instructor_b', password='pass12345', role=User.INSTRUCTOR
        )
        self.student_a = User.objects.create_user(
            username='student_a', password='pass12345', role=User.STUDENT
        )
        self.student_b = User.objects.create_user(
            username='student_b', password='pass12345', role=User.STUDENT
        )

        self.course = Course.objects.create(title='CS101', instructor=self.instructor_a)
        Enrollment.objects.create(student=self.student_a, course=self.course)
        self.assignment = Assignment.objects.create(course=self.course, title='Lab 1')
        self.submission = Submission.objects.create(
            assignment=self.assignment,
            student=self.student_a,
            content='print("hello")'
        )

    @staticmethod
    def actor(user):
        return AuthenticatedActor(id=user.pk, role=user.role)


class OwnershipChainTestCase(CourseworkFixtureMixin, TestCase):
    """Chain walks and broken links."""

    def test_resolves_instructor_from_every_link(self):
        expected = self.instructor_a.pk
        self.assertEqual(resolve_instructor(submission_id=self.submission.pk), expected)
        self.assertEqual(resolve_instructor(assignment_id=self.assignment.pk), expected)
        self.assertEqual(resolve_instructor(course_id=self.course.pk), expected)

    def test_full_walk_is_three_point_reads(self):
        with self.assertNumQueries(3):
            resolve_instructor(submission_id=self.submission.pk)

    def test_missing_submission(self):
        self.assertIsNone(resolve_instructor(submission_id=9999))
        self.assertIsNone(submission_owner(9999))

    def test_missing_assignment_breaks_chain(self):
        Assignment.objects.filter(pk=self.assignment.pk).delete()
        self.assertTrue(Submission.objects.filter(pk=self.submission.pk).exists())
        self.assertIsNone(resolve_instructor(submission_id=self.submission.pk))
        self.assertIsNone(resolve_course(self.assignment.pk))

    def test_missing_course_breaks_chain(self):
        Enrollment.objects.filter(course=self.course).delete()
        Course.objects.filter(pk=self.course.pk).delete()
        self.assertIsNone(resolve_instructor(submission_id=self.submission.pk))
        self.assertIsNone(resolve_instructor(assignment_id=self.assignment.pk))

    def test_submission_owner_and_enrollment(self):
        self.assertEqual(submission_owner(self.submission.pk), self.student_a.pk)
        self.assertTrue(is_enrolled(self.student_a.pk, self.course.pk))
        self.assertFalse(is_enrolled(self.student_b.pk, self.course.pk))


class AuthorizationGateTestCase(CourseworkFixtureMixin, TestCase):
    """Policy table, one action at a time."""

    def test_missing_actor_or_unknown_role_is_denied(self):
        self.assertEqual(
            authorize(None, Action.SUBMISSION_READ, self.submission.pk), Decision.DENY
        )
        stranger = AuthenticatedActor(id=self.admin.pk, role='superuser')
        self.assertEqual(
            authorize(stranger, Action.SUBMISSION_READ, self.submission.pk), Decision.DENY
        )

    def test_wrong_role_is_denied_without_lookups(self):
        with self.assertNumQueries(0):
            decision = authorize(self.actor(self.student_a), Action.SUBMISSION_READ, 9999)
        self.assertEqual(decision, Decision.DENY)

    def test_create_only_for_enrolled_students(self):
        action = Action.SUBMISSION_CREATE
        self.assertEqual(authorize(self.actor(self.student_a), action, self.assignment.pk), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.student_b), action, self.assignment.pk), Decision.DENY)
        for user in (self.instructor_a, self.instructor_b, self.admin):
            self.assertEqual(authorize(self.actor(user), action, self.assignment.pk), Decision.DENY)

    def test_create_on_missing_assignment_is_not_found(self):
        decision = authorize(self.actor(self.student_a), Action.SUBMISSION_CREATE, 9999)
        self.assertEqual(decision, Decision.NOT_FOUND)

    def test_read_follows_chain_instructor(self):
        action = Action.SUBMISSION_READ
        pk = self.submission.pk
        self.assertEqual(authorize(self.actor(self.instructor_a), action, pk), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.instructor_b), action, pk), Decision.DENY)
        self.assertEqual(authorize(self.actor(self.admin), action, pk), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.student_a), action, pk), Decision.DENY)

    def test_read_with_broken_chain_is_not_found_even_for_admin(self):
        Assignment.objects.filter(pk=self.assignment.pk).delete()
        decision = authorize(self.actor(self.admin), Action.SUBMISSION_READ, self.submission.pk)
        self.assertEqual(decision, Decision.NOT_FOUND)

    def test_only_owning_student_edits_content(self):
        action = Action.SUBMISSION_EDIT_CONTENT
        pk = self.submission.pk
        self.assertEqual(authorize(self.actor(self.student_a), action, pk), Decision.ALLOW)
        for user in (self.student_b, self.instructor_a, self.instructor_b, self.admin):
            self.assertEqual(authorize(self.actor(user), action, pk), Decision.DENY)

    def test_only_course_instructor_assigns_grade(self):
        action = Action.SUBMISSION_ASSIGN_GRADE
        pk = self.submission.pk
        self.assertEqual(authorize(self.actor(self.instructor_a), action, pk), Decision.ALLOW)
        for user in (self.student_a, self.student_b, self.instructor_b, self.admin):
            self.assertEqual(authorize(self.actor(user), action, pk), Decision.DENY)

    def test_delete_by_owner_or_admin(self):
        action = Action.SUBMISSION_DELETE
        pk = self.submission.pk
        self.assertEqual(authorize(self.actor(self.student_a), action, pk), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.admin), action, pk), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.student_b), action, pk), Decision.DENY)
        self.assertEqual(authorize(self.actor(self.instructor_a), action, pk), Decision.DENY)
        self.assertEqual(authorize(self.actor(self.student_a), action, 9999), Decision.NOT_FOUND)

    def test_list_follows_chain_instructor(self):
        action = Action.SUBMISSION_LIST
        pk = self.assignment.pk
        self.assertEqual(authorize(self.actor(self.instructor_a), action, pk), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.admin), action, pk), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.instructor_b), action, pk), Decision.DENY)
        self.assertEqual(authorize(self.actor(self.student_a), action, pk), Decision.DENY)

    def test_course_actions(self):
        self.assertEqual(authorize(self.actor(self.admin), Action.COURSE_CREATE), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.instructor_a), Action.COURSE_CREATE), Decision.DENY)
        manage = Action.COURSE_MANAGE
        self.assertEqual(authorize(self.actor(self.instructor_a), manage, self.course.pk), Decision.ALLOW)
        self.assertEqual(authorize(self.actor(self.instructor_b), manage, self.course.pk), Decision.DENY)
        self.assertEqual(authorize(self.actor(self.admin), manage, 9999), Decision.NOT_FOUND)


class PaginationTestCase(SimpleTestCase):
    """Page parsing, page math and links."""

    def test_parse_page(self):
        cases = {
            None: 1, '': 1, 'abc': 1, '0': 1, '-3': 1,
            '2': 2, '3abc': 3, ' 4': 4, '50': 50,
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(parse_page(raw), expected)

    def test_total_pages(self):
        for count, expected in [(0, 0), (1, 1), (10, 1), (11, 2), (25, 3)]:
            with self.subTest(count=count):
                self.assertEqual(PageWindow(1, 10, count).last_page, expected)

    def test_offset(self):
        self.assertEqual(PageWindow(1, 10, 25).offset, 0)
        self.assertEqual(PageWindow(3, 10, 25).offset, 20)

    def test_first_of_three_links_forward(self):
        links = PageWindow(1, 10, 25).links('/assignments/7/submissions')
        self.assertEqual(links, {
            'nextPage': '/assignments/7/submissions?page=2',
            'lastPage': '/assignments/7/submissions?page=3',
        })

    def test_last_of_three_links_backward(self):
        links = PageWindow(3, 10, 25).links('/assignments/7/submissions')
        self.assertEqual(links, {
            'prevPage': '/assignments/7/submissions?page=2',
            'firstPage': '/assignments/7/submissions?page=1',
        })

    def test_middle_page_has_all_links(self):
        links = PageWindow(2, 10, 25).links('/a')
        self.assertEqual(set(links), {'nextPage', 'lastPage', 'prevPage', 'firstPage'})

    def test_single_page_and_empty_have_no_links(self):
        self.assertEqual(PageWindow(1, 10, 7).links('/a'), {})
        self.assertEqual(PageWindow(1, 10, 0).links('/a'), {})

    def test_page_past_the_end_links_backward_only(self):
        links = PageWindow(5, 10, 25).links('/a')
        self.assertEqual(set(links), {'prevPage', 'firstPage'})
        self.assertEqual(links['prevPage'], '/a?page=4')


class SubmissionEndpointTestCase(CourseworkFixtureMixin, APITestCase):
    """Create, read, edit, grade and delete through HTTP."""

    def submission_url(self, pk=None):
        return f'/submissions/{pk or self.submission.pk}'

    def submissions_url(self, assignment_id=None):
        return f'/assignments/{assignment_id or self.assignment.pk}/submissions'

    def test_enrolled_student_creates_submission(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.post(
            self.submissions_url(),
            {'content': 'answer', 'studentId': self.student_b.pk, 'grade': 100},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(set(response.data), {'id'})

        created = Submission.objects.get(pk=response.data['id'])
        # Identity from the token, never from the payload
        self.assertEqual(created.student_id, self.student_a.pk)
        self.assertEqual(created.assignment_id, self.assignment.pk)
        self.assertIsNone(created.grade)

    def test_non_students_cannot_create(self):
        for user in (self.instructor_a, self.admin):
            self.client.force_authenticate(user=user)
            response = self.client.post(self.submissions_url(), {'content': 'x'}, format='json')
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
            self.assertEqual(response.data, INVALID_ROLE_MESSAGE)

    def test_unenrolled_student_cannot_create(self):
        self.client.force_authenticate(user=self.student_b)
        response = self.client.post(self.submissions_url(), {'content': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_on_missing_assignment(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.post(self.submissions_url(9999), {'content': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_validation_failure(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.post(self.submissions_url(), {'content': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('content', response.data['error'])

    def test_anonymous_gets_uniform_forbidden(self):
        response = self.client.get(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, INVALID_ROLE_MESSAGE)

    def test_course_instructor_reads_submission(self):
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.get(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.submission.pk)
        self.assertEqual(response.data['studentId'], self.student_a.pk)
        self.assertEqual(response.data['assignmentId'], self.assignment.pk)
        self.assertEqual(response.data['content'], 'print("hello")')

    def test_other_instructor_gets_uniform_forbidden(self):
        self.client.force_authenticate(user=self.instructor_b)
        response = self.client.get(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, INVALID_ROLE_MESSAGE)

    def test_students_cannot_read_single_submission(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.get(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_head_is_gated_like_get(self):
        self.client.force_authenticate(user=self.student_b)
        self.assertEqual(self.client.head(self.submission_url()).status_code, status.HTTP_403_FORBIDDEN)
        # Role is refused before any lookup, so a missing id looks the same
        self.assertEqual(self.client.head(self.submission_url(9999)).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.instructor_b)
        self.assertEqual(self.client.head(self.submission_url()).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.instructor_a)
        self.assertEqual(self.client.head(self.submission_url()).status_code, status.HTTP_200_OK)

    def test_undeclared_method_is_refused(self):
        # The grade route only declares PUT
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.post(f'{self.submission_url()}/grade', {'grade': 90}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, INVALID_ROLE_MESSAGE)
        self.submission.refresh_from_db()
        self.assertIsNone(self.submission.grade)

    def test_admin_read_with_deleted_assignment_is_not_found(self):
        Assignment.objects.filter(pk=self.assignment.pk).delete()
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, NOT_FOUND_MESSAGE)

    def test_owner_edits_content_only(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.patch(
            self.submission_url(), {'content': 'v2', 'grade': 100}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.content, 'v2')
        self.assertIsNone(self.submission.grade)

    def test_put_replaces_content(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.put(self.submission_url(), {'content': 'v3'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.content, 'v3')

    def test_other_student_cannot_edit(self):
        self.client.force_authenticate(user=self.student_b)
        response = self.client.patch(self.submission_url(), {'content': 'mine now'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, INVALID_ROLE_MESSAGE)

    def test_edit_missing_submission_is_not_found(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.patch(self.submission_url(9999), {'content': 'v2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_zero_rows_updated_is_not_found(self):
        # Row disappears between the gate check and the write
        self.client.force_authenticate(user=self.student_a)
        with mock.patch('apps.coursework.permissions.authorize', return_value=Decision.ALLOW):
            response = self.client.patch(self.submission_url(9999), {'content': 'v2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_zero_rows_deleted_is_not_found(self):
        self.client.force_authenticate(user=self.student_a)
        with mock.patch('apps.coursework.permissions.authorize', return_value=Decision.ALLOW):
            response = self.client.delete(self.submission_url(9999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_course_instructor_assigns_grade(self):
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.put(
            f'{self.submission_url()}/grade', {'grade': 87.5, 'content': 'x'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.grade, 87.5)
        self.assertIsNotNone(self.submission.graded_at)
        self.assertEqual(self.submission.content, 'print("hello")')

    def test_students_cannot_grade(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.put(f'{self.submission_url()}/grade', {'grade': 100}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_other_instructor_cannot_grade(self):
        self.client.force_authenticate(user=self.instructor_b)
        response = self.client.put(f'{self.submission_url()}/grade', {'grade': 100}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_negative_grade_rejected(self):
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.put(f'{self.submission_url()}/grade', {'grade': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('grade', response.data['error'])

    def test_owner_deletes_submission(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.delete(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Submission.objects.filter(pk=self.submission.pk).exists())

    def test_admin_deletes_submission(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_instructor_cannot_delete(self):
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.delete(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Submission.objects.filter(pk=self.submission.pk).exists())

    def test_unexpected_error_is_opaque(self):
        self.client.force_authenticate(user=self.admin)
        with mock.patch('apps.coursework.views.get_object_or_404', side_effect=RuntimeError('db gone')):
            response = self.client.get(self.submission_url())
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, SERVER_ERROR_MESSAGE)


class SubmissionListTestCase(CourseworkFixtureMixin, APITestCase):
    """Paginated listing by assignment."""

    def setUp(self):
        super().setUp()
        # 25 submissions in total, including the fixture one
        Submission.objects.bulk_create([
            Submission(assignment=self.assignment, student=self.student_a, content=f'attempt {i}')
            for i in range(24)
        ])
        self.url = f'/assignments/{self.assignment.pk}/submissions'

    def test_first_page(self):
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            set(response.data),
            {'submissions', 'pageNumber', 'totalPages', 'pageSize', 'totalCount', 'links'}
        )
        self.assertEqual(len(response.data['submissions']), 10)
        self.assertEqual(response.data['pageNumber'], 1)
        self.assertEqual(response.data['totalPages'], 3)
        self.assertEqual(response.data['pageSize'], 10)
        self.assertEqual(response.data['totalCount'], 25)
        self.assertEqual(response.data['links'], {
            'nextPage': f'{self.url}?page=2',
            'lastPage': f'{self.url}?page=3',
        })

    def test_last_page(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.url, {'page': 3})
        self.assertEqual(len(response.data['submissions']), 5)
        self.assertEqual(response.data['links'], {
            'prevPage': f'{self.url}?page=2',
            'firstPage': f'{self.url}?page=1',
        })

    def test_windows_do_not_overlap(self):
        self.client.force_authenticate(user=self.admin)
        first = self.client.get(self.url, {'page': 1}).data['submissions']
        second = self.client.get(self.url, {'page': 2}).data['submissions']
        self.assertFalse({s['id'] for s in first} & {s['id'] for s in second})

    def test_bad_page_falls_back_to_first(self):
        self.client.force_authenticate(user=self.admin)
        for raw in ('abc', '0', '-2'):
            response = self.client.get(self.url, {'page': raw})
            self.assertEqual(response.data['pageNumber'], 1)

    def test_page_past_the_end_is_empty(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.url, {'page': 9})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['submissions'], [])
        self.assertEqual(response.data['pageNumber'], 9)

    def test_huge_page_number_is_empty_not_an_error(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.url, {'page': '99999999999999999999'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['submissions'], [])
        self.assertEqual(response.data['pageNumber'], 99999999999999999999)
        self.assertEqual(response.data['totalPages'], 3)
        self.assertEqual(response.data['totalCount'], 25)
        self.assertEqual(response.data['links'], {
            'prevPage': f'{self.url}?page=99999999999999999998',
            'firstPage': f'{self.url}?page=1',
        })

    def test_head_on_listing_is_gated(self):
        self.client.force_authenticate(user=self.student_b)
        self.assertEqual(self.client.head(self.url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.instructor_b)
        self.assertEqual(self.client.head(self.url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.instructor_a)
        self.assertEqual(self.client.head(self.url).status_code, status.HTTP_200_OK)

    def test_empty_assignment(self):
        empty = Assignment.objects.create(course=self.course, title='Lab 2')
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.get(f'/assignments/{empty.pk}/submissions', {'page': 2})
        self.assertEqual(response.data['totalPages'], 0)
        self.assertEqual(response.data['totalCount'], 0)
        self.assertEqual(response.data['submissions'], [])

    def test_other_instructor_gets_uniform_forbidden(self):
        self.client.force_authenticate(user=self.instructor_b)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, INVALID_ROLE_MESSAGE)

    def test_students_cannot_list(self):
        self.client.force_authenticate(user=self.student_a)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_assignment_is_not_found(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/assignments/9999/submissions')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class UserEndpointTestCase(APITestCase):
    """Registration, login and lookup."""

    def setUp(self):
        self.admin = User.objects.create_user(
            username='admin', password='pass12345', role=User.ADMIN
        )
        self.student = User.objects.create_user(
            username='student1', password='testpass123', role=User.STUDENT
        )

    def test_register_student(self):
        data = {
            'username': 'newstudent',
            'email': 'new@example.com',
            'password': 'securepass123',
        }
        response = self.client.post('/users', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(pk=response.data['id'])
        self.assertEqual(user.role, User.STUDENT)
        self.assertTrue(user.check_password('securepass123'))

    def test_anonymous_cannot_register_instructor(self):
        data = {'username': 'sneaky', 'password': 'securepass123', 'role': User.INSTRUCTOR}
        response = self.client.post('/users', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('role', response.data['error'])

    def test_admin_registers_instructor(self):
        self.client.force_authenticate(user=self.admin)
        data = {'username': 'prof', 'password': 'securepass123', 'role': User.INSTRUCTOR}
        response = self.client.post('/users', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(pk=response.data['id']).role, User.INSTRUCTOR)

    def test_login_and_use_token(self):
        response = self.client.post(
            '/users/login', {'username': 'student1', 'password': 'testpass123'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('token', response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Token {response.data['token']}")
        response = self.client.get(f'/users/{self.student.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], User.STUDENT)
        self.assertNotIn('password', response.data)

    def test_login_failures(self):
        response = self.client.post('/users/login', {'username': 'student1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(
            '/users/login', {'username': 'student1', 'password': 'wrong'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data, {'error': 'Invalid credentials'})

    def test_bad_token_gets_uniform_forbidden(self):
        self.client.credentials(HTTP_AUTHORIZATION='Token not-a-real-token')
        response = self.client.get(f'/users/{self.student.pk}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, INVALID_ROLE_MESSAGE)

    def test_user_lookup_is_self_or_admin(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.get(f'/users/{self.admin.pk}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.client.get(f'/users/{self.student.pk}').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/users/9999').status_code, status.HTTP_404_NOT_FOUND)

    def test_head_on_other_user_is_forbidden(self):
        self.client.force_authenticate(user=self.student)
        self.assertEqual(self.client.head(f'/users/{self.admin.pk}').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.head(f'/users/{self.student.pk}').status_code, status.HTTP_200_OK)

    def test_superuser_gets_admin_role(self):
        root = User.objects.create_superuser('root', 'root@example.com', 'pass12345')
        self.assertEqual(root.role, User.ADMIN)
        self.assertTrue(root.is_superuser)

        self.client.force_authenticate(user=root)
        self.assertEqual(self.client.get(f'/users/{self.student.pk}').status_code, status.HTTP_200_OK)


class CourseEndpointTestCase(CourseworkFixtureMixin, APITestCase):
    """Courses, assignments and enrollments."""

    def test_admin_creates_course(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            '/courses', {'title': 'CS102', 'instructorId': self.instructor_b.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Course.objects.get(pk=response.data['id']).instructor, self.instructor_b)

    def test_course_needs_an_instructor(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            '/courses', {'title': 'CS102', 'instructorId': self.student_a.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('instructorId', response.data['error'])

    def test_instructor_cannot_create_course(self):
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.post(
            '/courses', {'title': 'CS102', 'instructorId': self.instructor_a.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_course_instructor_adds_assignment(self):
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.post(
            f'/courses/{self.course.pk}/assignments', {'title': 'Lab 2'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Assignment.objects.get(pk=response.data['id']).course_id, self.course.pk)

    def test_other_instructor_cannot_add_assignment(self):
        self.client.force_authenticate(user=self.instructor_b)
        response = self.client.post(
            f'/courses/{self.course.pk}/assignments', {'title': 'Lab 2'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_assignment_on_missing_course(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/courses/9999/assignments', {'title': 'Lab 2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_enrollment_unlocks_submission(self):
        self.client.force_authenticate(user=self.instructor_a)
        response = self.client.post(
            f'/courses/{self.course.pk}/enrollments', {'studentId': self.student_b.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.client.force_authenticate(user=self.student_b)
        response = self.client.post(
            f'/assignments/{self.assignment.pk}/submissions', {'content': 'late joiner'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_duplicate_enrollment_rejected(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            f'/courses/{self.course.pk}/enrollments', {'studentId': self.student_a.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('already enrolled', response.data['error'])

    def test_only_students_can_be_enrolled(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            f'/courses/{self.course.pk}/enrollments', {'studentId': self.instructor_b.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ErrorRenderingTestCase(SimpleTestCase):

    def test_validation_message_flattens_fields(self):
        detail = {'content': ['This field may not be blank.'], 'non_field_errors': ['Bad pair.']}
        self.assertEqual(
            validation_message(detail),
            'content: This field may not be blank.; Bad pair.'
        )

    def test_integrity_error_hides_driver_text(self):
        exc = IntegrityError('UNIQUE constraint failed: enrollments.student_id, enrollments.course_id')
        response = coursework_exception_handler(exc, {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, INVALID_INPUT_MESSAGE)


class SampleDataCommandTestCase(TestCase):

    def test_create_sample_data(self):
        out = StringIO()
        call_command('create_sample_data', stdout=out)
        self.assertIn('Sample data created successfully!', out.getvalue())
        self.assertEqual(User.objects.filter(role=User.INSTRUCTOR).count(), 2)

        submission = Submission.objects.get()
        instructor = User.objects.get(username='instructor1')
        self.assertEqual(resolve_instructor(submission_id=submission.pk), instructor.pk)

        # Users are reused on a second run
        call_command('create_sample_data', stdout=StringIO())
        self.assertEqual(User.objects.count(), 5)
