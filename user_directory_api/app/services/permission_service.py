"""
Permission evaluation for user mutations.

``PermissionService.can_perform`` answers one question: may this
requester perform this action on this target?  It is a pure function
of its inputs.  Each action owns an ordered list of rules; a rule
returns ``True`` (allow), ``False`` (deny) or ``None`` (no opinion),
the first opinion wins and the default is deny.  Keeping the rules in
one list makes the evaluation order explicit: the self‑escalation
rule sits in front of the elevated‑role and ownership rules so no
later rule can let a caller change their own role.
"""

from enum import Enum
from typing import AbstractSet, Callable, Dict, List, Optional

from ..core.security import Requester
from ..schemas.user import UserRead


class Action(str, Enum):
    UPDATE = "update"
    DELETE = "delete"


ROLE_FIELD = "role_id"

# Fields a non‑elevated user may change on their own record.  The role
# field is absent; ``friends`` covers friend‑list changes.
SELF_EDITABLE_FIELDS = frozenset(
    {
        "login",
        "password",
        "name",
        "last_name",
        "email",
        "phone",
        "socials",
        "avatar",
        "background",
        "friends",
    }
)

Rule = Callable[[Requester, Optional[UserRead], AbstractSet[str]], Optional[bool]]


def _is_self(requester: Requester, target: Optional[UserRead]) -> bool:
    return target is not None and target.id == requester.user_id


def _deny_self_role_change(requester, target, changed):
    if _is_self(requester, target) and ROLE_FIELD in changed:
        return False
    return None


def _allow_elevated(requester, target, changed):
    return True if requester.is_elevated else None


def _allow_self_service_edit(requester, target, changed):
    if _is_self(requester, target) and changed <= SELF_EDITABLE_FIELDS:
        return True
    return None


def _allow_self(requester, target, changed):
    return True if _is_self(requester, target) else None


RULES: Dict[Action, List[Rule]] = {
    Action.UPDATE: [
        _deny_self_role_change,
        _allow_elevated,
        _allow_self_service_edit,
    ],
    Action.DELETE: [
        _allow_elevated,
        _allow_self,
    ],
}


class PermissionService:
    """Evaluates the rule lists above."""

    @classmethod
    def can_perform(
        cls,
        action: Action,
        requester: Requester,
        target: Optional[UserRead] = None,
        changed_fields: Optional[AbstractSet[str]] = None,
    ) -> bool:
        """Return ``True`` if ``requester`` may perform ``action`` on ``target``.

        ``changed_fields`` names the fields an update would touch.  An
        empty or missing set means "no role change requested".
        """
        changed = frozenset(changed_fields or ())
        for rule in RULES.get(action, []):
            verdict = rule(requester, target, changed)
            if verdict is not None:
                return verdict
        return False
