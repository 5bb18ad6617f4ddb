"""
Role and relationship based authorization.

Every protected operation is tagged with a (resource, action) capability. The
policy table maps each capability to the predicates that grant it:

- owner: the principal is the student who owns the record
- linked_parent: the principal is a parent with a StudentParentRelationship
  row for the owning student

A capability missing from the table is denied.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from unitrack.errors import AuthorizationError, NotFoundError
from unitrack.models import Student, StudentParentRelationship, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    id: int
    email: str
    role: UserRole
    first_name: str = ""
    last_name: str = ""

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @property
    def is_parent(self) -> bool:
        return self.role == UserRole.PARENT


class Resource(str, enum.Enum):
    STUDENT = "student"
    APPLICATION = "application"
    REQUIREMENT = "requirement"
    PARENT_NOTE = "parent_note"
    DASHBOARD = "dashboard"


class Action(str, enum.Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SUBMIT = "submit"


def _is_owner(guard: "AccessGuard", student_id: int) -> bool:
    if not guard.principal.is_student:
        return False
    student = guard.own_student()
    return student is not None and student.id == student_id


def _is_linked_parent(guard: "AccessGuard", student_id: int) -> bool:
    if not guard.principal.is_parent:
        return False
    return student_id in guard.linked_student_ids()


Predicate = Callable[["AccessGuard", int], bool]

POLICY: Dict[Tuple[Resource, Action], Tuple[Predicate, ...]] = {
    (Resource.STUDENT, Action.READ): (_is_owner, _is_linked_parent),
    (Resource.STUDENT, Action.UPDATE): (_is_owner,),
    (Resource.APPLICATION, Action.READ): (_is_owner, _is_linked_parent),
    (Resource.APPLICATION, Action.CREATE): (_is_owner,),
    (Resource.APPLICATION, Action.UPDATE): (_is_owner,),
    (Resource.APPLICATION, Action.DELETE): (_is_owner,),
    (Resource.APPLICATION, Action.SUBMIT): (_is_owner,),
    (Resource.REQUIREMENT, Action.READ): (_is_owner, _is_linked_parent),
    (Resource.REQUIREMENT, Action.CREATE): (_is_owner,),
    (Resource.REQUIREMENT, Action.UPDATE): (_is_owner,),
    (Resource.REQUIREMENT, Action.DELETE): (_is_owner,),
    (Resource.PARENT_NOTE, Action.READ): (_is_linked_parent,),
    (Resource.PARENT_NOTE, Action.CREATE): (_is_linked_parent,),
    (Resource.DASHBOARD, Action.READ): (_is_owner, _is_linked_parent),
}


class AccessGuard:
    """Per-request authorization for one principal"""

    def __init__(self, db: Session, principal: Principal):
        self.db = db
        self.principal = principal
        self._student: Optional[Student] = None
        self._student_loaded = False
        self._linked_ids: Optional[List[int]] = None

    def own_student(self) -> Optional[Student]:
        if not self._student_loaded:
            self._student = self.db.query(Student).filter(Student.user_id == self.principal.id).first()
            self._student_loaded = True
        return self._student

    def require_student(self) -> Student:
        """The caller's own student profile; students only"""
        self.require_role(UserRole.STUDENT)
        student = self.own_student()
        if student is None:
            raise NotFoundError("Student profile")
        return student

    def linked_student_ids(self) -> List[int]:
        if self._linked_ids is None:
            rows = self.db.query(StudentParentRelationship.student_id).filter(
                StudentParentRelationship.parent_id == self.principal.id
            ).all()
            self._linked_ids = [row[0] for row in rows]
        return self._linked_ids

    def require_role(self, *roles: UserRole) -> None:
        if self.principal.role not in roles:
            allowed = ", ".join(role.value for role in roles)
            raise AuthorizationError(f"Role '{self.principal.role.value}' not authorized (requires {allowed})")

    def can(self, resource: Resource, action: Action, student_id: int) -> bool:
        predicates = POLICY.get((resource, action), ())
        return any(predicate(self, student_id) for predicate in predicates)

    def authorize(self, resource: Resource, action: Action, student_id: int) -> None:
        if self.can(resource, action, student_id):
            return
        logger.warning(
            f"Denied {action.value} on {resource.value} for user {self.principal.id} "
            f"({self.principal.role.value}), student {student_id}"
        )
        if self.principal.is_parent and (resource, action) in POLICY and _is_linked_parent in POLICY[(resource, action)]:
            raise AuthorizationError("Access denied to this student")
        raise AuthorizationError(f"Cannot {action.value} this {resource.value.replace('_', ' ')}")
