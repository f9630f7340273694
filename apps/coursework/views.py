import logging

from rest_framework import status, generics
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.authtoken.models import Token
from rest_framework.exceptions import NotFound
from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from drf_spectacular.utils import extend_schema

from .access import Action, actor_from_request
from .models import Enrollment, Submission
from .pagination import AssignmentSubmissionPagination
from .permissions import GatePermission
from .serializers import (
    UserRegistrationSerializer,
    UserSerializer,
    CourseCreateSerializer,
    AssignmentCreateSerializer,
    EnrollmentCreateSerializer,
    SubmissionSerializer,
    SubmissionContentSerializer,
    SubmissionGradeSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()

# Fields each write path may touch; everything else in the body is dropped.
CONTENT_FIELDS = ('content',)
GRADE_FIELDS = ('grade',)


def project_fields(validated_data, allowed):
    return {name: validated_data[name] for name in allowed if name in validated_data}


@extend_schema(tags=['Users'])
class RegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = UserRegistrationSerializer(
            data=request.data, context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered user %s with role %s", user.pk, user.role)
        return Response({'id': user.id}, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Users'])
class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        username = request.data.get('username')
        password = request.data.get('password')

        if not username or not password:
            return Response(
                {'error': 'Username and password required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        user = authenticate(username=username, password=password)

        if user:
            token, _ = Token.objects.get_or_create(user=user)
            return Response({'token': token.key})

        return Response(
            {'error': 'Invalid credentials'},
            status=status.HTTP_401_UNAUTHORIZED
        )


@extend_schema(tags=['Users'])
class UserDetailView(generics.RetrieveAPIView):
    permission_classes = [IsAuthenticated, GatePermission]
    gate_actions = {'GET': Action.USER_READ}
    gate_lookup_kwarg = 'user_id'
    serializer_class = UserSerializer
    queryset = User.objects.all()
    lookup_url_kwarg = 'user_id'


@extend_schema(tags=['Courses'])
class CourseCreateView(APIView):
    permission_classes = [IsAuthenticated, GatePermission]
    gate_actions = {'POST': Action.COURSE_CREATE}

    @transaction.atomic
    def post(self, request):
        serializer = CourseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        course = serializer.save()
        logger.info("Created course %s for instructor %s", course.pk, course.instructor_id)
        return Response({'id': course.id}, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Courses'])
class CourseAssignmentCreateView(APIView):
    permission_classes = [IsAuthenticated, GatePermission]
    gate_actions = {'POST': Action.COURSE_MANAGE}
    gate_lookup_kwarg = 'course_id'

    @transaction.atomic
    def post(self, request, course_id):
        serializer = AssignmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = serializer.save(course_id=course_id)
        logger.info("Created assignment %s in course %s", assignment.pk, course_id)
        return Response({'id': assignment.id}, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Courses'])
class CourseEnrollmentCreateView(APIView):
    permission_classes = [IsAuthenticated, GatePermission]
    gate_actions = {'POST': Action.COURSE_MANAGE}
    gate_lookup_kwarg = 'course_id'

    @transaction.atomic
    def post(self, request, course_id):
        serializer = EnrollmentCreateSerializer(
            data=request.data, context={'course_id': course_id}
        )
        serializer.is_valid(raise_exception=True)
        enrollment = Enrollment.objects.create(
            student=serializer.validated_data['studentId'],
            course_id=course_id
        )
        logger.info("Enrolled student %s in course %s", enrollment.student_id, course_id)
        return Response({'id': enrollment.id}, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Submissions'])
class AssignmentSubmissionListCreateView(generics.ListAPIView):
    """
    GET lists an assignment's submissions, page by page.
    POST creates a submission for the calling student.

    Identity comes from request.user and the assignment from the URL;
    neither is read from the payload.
    """
    permission_classes = [IsAuthenticated, GatePermission]
    gate_actions = {
        'GET': Action.SUBMISSION_LIST,
        'POST': Action.SUBMISSION_CREATE,
    }
    gate_lookup_kwarg = 'assignment_id'
    serializer_class = SubmissionSerializer
    pagination_class = AssignmentSubmissionPagination

    def get_queryset(self):
        return Submission.objects.filter(
            assignment_id=self.kwargs['assignment_id']
        ).order_by('id')

    @extend_schema(request=SubmissionContentSerializer)
    @transaction.atomic
    def post(self, request, assignment_id):
        serializer = SubmissionContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        actor = actor_from_request(request)
        submission = Submission.objects.create(
            assignment_id=assignment_id,
            student_id=actor.id,
            submitted_at=timezone.now(),
            **project_fields(serializer.validated_data, CONTENT_FIELDS)
        )
        logger.info("Student %s submitted %s for assignment %s",
                    actor.id, submission.pk, assignment_id)
        return Response({'id': submission.id}, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Submissions'])
class SubmissionDetailView(APIView):
    """
    Read, edit or delete a single submission.

    Zero rows affected by an edit or delete is reported as not found.
    """
    permission_classes = [IsAuthenticated, GatePermission]
    gate_actions = {
        'GET': Action.SUBMISSION_READ,
        'PATCH': Action.SUBMISSION_EDIT_CONTENT,
        'PUT': Action.SUBMISSION_EDIT_CONTENT,
        'DELETE': Action.SUBMISSION_DELETE,
    }
    gate_lookup_kwarg = 'submission_id'

    @extend_schema(responses=SubmissionSerializer)
    def get(self, request, submission_id):
        submission = get_object_or_404(Submission, pk=submission_id)
        return Response(SubmissionSerializer(submission).data)

    @extend_schema(request=SubmissionContentSerializer, responses={204: None})
    def patch(self, request, submission_id):
        serializer = SubmissionContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = Submission.objects.filter(pk=submission_id).update(
            **project_fields(serializer.validated_data, CONTENT_FIELDS)
        )
        if not updated:
            raise NotFound()
        logger.info("Submission %s content updated", submission_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=SubmissionContentSerializer, responses={204: None})
    def put(self, request, submission_id):
        return self.patch(request, submission_id)

    @extend_schema(responses={204: None})
    def delete(self, request, submission_id):
        deleted, _ = Submission.objects.filter(pk=submission_id).delete()
        if not deleted:
            raise NotFound()
        logger.info("Submission %s deleted", submission_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=['Submissions'])
class SubmissionGradeView(APIView):
    """Grade a submission. Only the instructor of the owning course may."""
    permission_classes = [IsAuthenticated, GatePermission]
    gate_actions = {'PUT': Action.SUBMISSION_ASSIGN_GRADE}
    gate_lookup_kwarg = 'submission_id'

    @extend_schema(request=SubmissionGradeSerializer, responses={204: None})
    def put(self, request, submission_id):
        serializer = SubmissionGradeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = Submission.objects.filter(pk=submission_id).update(
            graded_at=timezone.now(),
            **project_fields(serializer.validated_data, GRADE_FIELDS)
        )
        if not updated:
            raise NotFound()
        logger.info("Submission %s graded", submission_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
