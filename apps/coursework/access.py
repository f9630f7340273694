"""
Authorization gate for coursework resources.

authorize() is the single decision point consulted before any protected
read or write. It takes the caller as an AuthenticatedActor value built
once from the authenticated request; the role on it is trusted as given
by the authentication layer and never re-read from storage here.

Evaluation order:
- no actor, or a role outside the known set -> DENY
- role not permitted for the action at all -> DENY, before any lookup,
  so wrong-role callers learn nothing about which resources exist
- ownership rule, resolved through the ownership chain; a missing link
  -> NOT_FOUND
"""
import logging
from dataclasses import dataclass
from enum import Enum

from .models import User
from . import ownership

logger = logging.getLogger(__name__)

ROLES = frozenset({User.STUDENT, User.INSTRUCTOR, User.ADMIN})


class Decision(Enum):
    ALLOW = 'allow'
    DENY = 'deny'
    NOT_FOUND = 'not_found'


class Action(str, Enum):
    SUBMISSION_CREATE = 'submission.create'
    SUBMISSION_READ = 'submission.read'
    SUBMISSION_EDIT_CONTENT = 'submission.edit_content'
    SUBMISSION_ASSIGN_GRADE = 'submission.assign_grade'
    SUBMISSION_DELETE = 'submission.delete'
    SUBMISSION_LIST = 'submission.list'
    COURSE_CREATE = 'course.create'
    COURSE_MANAGE = 'course.manage'
    USER_READ = 'user.read'


@dataclass(frozen=True)
class AuthenticatedActor:
    id: int
    role: str


# Roles that may attempt each action at all; ownership is checked after.
ROLE_POLICY = {
    Action.SUBMISSION_CREATE: {User.STUDENT},
    Action.SUBMISSION_READ: {User.INSTRUCTOR, User.ADMIN},
    Action.SUBMISSION_EDIT_CONTENT: {User.STUDENT},
    Action.SUBMISSION_ASSIGN_GRADE: {User.INSTRUCTOR},
    Action.SUBMISSION_DELETE: {User.STUDENT, User.ADMIN},
    Action.SUBMISSION_LIST: {User.INSTRUCTOR, User.ADMIN},
    Action.COURSE_CREATE: {User.ADMIN},
    Action.COURSE_MANAGE: {User.INSTRUCTOR, User.ADMIN},
    Action.USER_READ: ROLES,
}


def actor_from_request(request):
    """Build the actor value from an authenticated request, or None."""
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return None
    return AuthenticatedActor(id=user.pk, role=user.role)


def _instructor_rule(actor, instructor_id):
    if instructor_id is None:
        return Decision.NOT_FOUND
    if actor.role == User.ADMIN or instructor_id == actor.id:
        return Decision.ALLOW
    return Decision.DENY


def _student_owner_rule(actor, student_id):
    if student_id is None:
        return Decision.NOT_FOUND
    if actor.role == User.ADMIN or student_id == actor.id:
        return Decision.ALLOW
    return Decision.DENY


def _create_rule(actor, assignment_id):
    course_id = ownership.resolve_course(assignment_id)
    if course_id is None:
        return Decision.NOT_FOUND
    if ownership.is_enrolled(actor.id, course_id):
        return Decision.ALLOW
    return Decision.DENY


def _evaluate(actor, action, resource_id):
    if action is Action.SUBMISSION_CREATE:
        return _create_rule(actor, resource_id)
    if action in (Action.SUBMISSION_READ, Action.SUBMISSION_ASSIGN_GRADE):
        return _instructor_rule(
            actor, ownership.resolve_instructor(submission_id=resource_id)
        )
    if action is Action.SUBMISSION_LIST:
        return _instructor_rule(
            actor, ownership.resolve_instructor(assignment_id=resource_id)
        )
    if action is Action.COURSE_MANAGE:
        return _instructor_rule(
            actor, ownership.resolve_instructor(course_id=resource_id)
        )
    if action in (Action.SUBMISSION_EDIT_CONTENT, Action.SUBMISSION_DELETE):
        return _student_owner_rule(actor, ownership.submission_owner(resource_id))
    if action is Action.USER_READ:
        if actor.role == User.ADMIN or resource_id == actor.id:
            return Decision.ALLOW
        return Decision.DENY
    if action is Action.COURSE_CREATE:
        return Decision.ALLOW
    return Decision.DENY


def authorize(actor, action, resource_id=None):
    """
    Decide whether `actor` may perform `action` on the resource identified
    by `resource_id`.

    Returns a Decision. NOT_FOUND means some link needed to evaluate the
    rule does not exist; callers render it exactly like a missing resource.
    """
    if actor is None or actor.role not in ROLES:
        decision = Decision.DENY
    elif actor.role not in ROLE_POLICY.get(action, ()):
        decision = Decision.DENY
    else:
        decision = _evaluate(actor, action, resource_id)

    if decision is not Decision.ALLOW:
        logger.info(
            "Gate %s: action=%s resource=%s actor=%s role=%s",
            decision.value,
            getattr(action, 'value', action),
            resource_id,
            getattr(actor, 'id', None),
            getattr(actor, 'role', None),
        )
    return decision
