from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from apps.coursework.models import Course, Enrollment, Assignment, Submission

User = get_user_model()

SAMPLE_PASSWORD = 'testpass123'

SAMPLE_USERS = [
    ('admin1', 'admin1@test.com', User.ADMIN, 'Ada', 'Lovelace'),
    ('instructor1', 'instructor1@test.com', User.INSTRUCTOR, 'Grace', 'Hopper'),
    ('instructor2', 'instructor2@test.com', User.INSTRUCTOR, 'Alan', 'Turing'),
    ('student1', 'student1@test.com', User.STUDENT, 'Alice', 'Johnson'),
    ('student2', 'student2@test.com', User.STUDENT, 'Bob', 'Smith'),
]


class Command(BaseCommand):
    help = 'Creates sample users, a course, an assignment and a submission'

    def handle(self, *args, **kwargs):
        self.stdout.write('Creating sample data...')

        users = {}
        for username, email, role, first_name, last_name in SAMPLE_USERS:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username=username,
                    email=email,
                    password=SAMPLE_PASSWORD,
                    first_name=first_name,
                    last_name=last_name,
                    role=role
                )
                self.stdout.write(self.style.SUCCESS(f'Created {role}: {username}'))
            users[username] = user

        course = Course.objects.create(
            title='Introduction to Algorithms',
            instructor=users['instructor1']
        )
        Enrollment.objects.get_or_create(student=users['student1'], course=course)

        assignment = Assignment.objects.create(
            course=course,
            title='Sorting Lab',
            description='Implement merge sort and analyse its running time.'
        )
        Submission.objects.create(
            assignment=assignment,
            student=users['student1'],
            content='Merge sort splits the input in halves and merges sorted runs in O(n log n).'
        )

        self.stdout.write(self.style.SUCCESS(
            f'Created course {course.pk} with assignment {assignment.pk}'
        ))
        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write(f'Test credentials: any sample username, password={SAMPLE_PASSWORD}')
