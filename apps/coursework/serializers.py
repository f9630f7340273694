from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Course, Enrollment, Assignment, Submission

User = get_user_model()


class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    Registration with password hashing via set_password.

    Anonymous callers can only register students; an authenticated admin
    may create users with any role.
    """
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, default=User.STUDENT)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'password', 'role']

    def validate_role(self, value):
        request = self.context.get('request')
        requester = getattr(request, 'user', None)
        is_admin = bool(
            requester and requester.is_authenticated and requester.role == User.ADMIN
        )
        if value != User.STUDENT and not is_admin:
            raise serializers.ValidationError("Only an admin can create this role.")
        return value

    def create(self, validated_data):
        user = User(
            username=validated_data['username'],
            email=validated_data.get('email', ''),
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            role=validated_data['role'],
        )
        user.set_password(validated_data['password'])
        user.save()
        return user


class UserSerializer(serializers.ModelSerializer):
    """Public user view - never exposes credentials."""
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'role']


class CourseCreateSerializer(serializers.ModelSerializer):
    instructorId = serializers.PrimaryKeyRelatedField(
        source='instructor',
        queryset=User.objects.filter(role=User.INSTRUCTOR),
    )

    class Meta:
        model = Course
        fields = ['id', 'title', 'instructorId']


class AssignmentCreateSerializer(serializers.ModelSerializer):
    dueAt = serializers.DateTimeField(source='due_at', required=False, allow_null=True)

    class Meta:
        model = Assignment
        fields = ['id', 'title', 'description', 'dueAt']


class EnrollmentCreateSerializer(serializers.Serializer):
    """Course comes from the URL; only the student is read from the body."""
    studentId = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(role=User.STUDENT),
    )

    def validate(self, attrs):
        course_id = self.context['course_id']
        if Enrollment.objects.filter(student=attrs['studentId'], course_id=course_id).exists():
            raise serializers.ValidationError("Student is already enrolled in this course.")
        return attrs


class SubmissionSerializer(serializers.ModelSerializer):
    """Full submission representation."""
    assignmentId = serializers.IntegerField(source='assignment_id', read_only=True)
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    submittedAt = serializers.DateTimeField(source='submitted_at', read_only=True)
    gradedAt = serializers.DateTimeField(source='graded_at', read_only=True)

    class Meta:
        model = Submission
        fields = ['id', 'assignmentId', 'studentId', 'content', 'grade',
                  'submittedAt', 'gradedAt']


class SubmissionContentSerializer(serializers.Serializer):
    """
    Student-owned fields. Used for both create and content edits; the
    assignment and student are never taken from the payload.
    """
    content = serializers.CharField(allow_blank=False)


class SubmissionGradeSerializer(serializers.Serializer):
    """Instructor-owned fields."""
    grade = serializers.FloatField(min_value=0)
