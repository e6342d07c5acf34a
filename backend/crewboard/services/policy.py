"""Authorization rules for workspace membership, skills and task writes.

Each rule is a pure function over state the caller has just read from storage
and returns a `PolicyDecision`. Rules are checked in a fixed order so that a
request failing several of them always reports the same reason. Use
`enforce` to turn a denial into the matching domain error before mutating
anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from crewboard.core.errors import ConflictError, CrewboardError, UnauthorizedError
from crewboard.models.enums import MemberRole

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from crewboard.models.workspace_members import WorkspaceMember


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    code: str | None = None
    reason: str = ""
    kind: type[CrewboardError] | None = None


ALLOW = PolicyDecision(allowed=True)


def _deny_unauthorized(code: str, reason: str) -> PolicyDecision:
    return PolicyDecision(allowed=False, code=code, reason=reason, kind=UnauthorizedError)


def _deny_conflict(code: str, reason: str) -> PolicyDecision:
    return PolicyDecision(allowed=False, code=code, reason=reason, kind=ConflictError)


NOT_A_MEMBER = _deny_unauthorized("not_a_member", "You are not a member of this workspace.")


def enforce(decision: PolicyDecision) -> None:
    """Raise the decision's error if it denies the action."""
    if decision.allowed:
        return
    kind = decision.kind or UnauthorizedError
    raise kind(decision.reason, code=decision.code)


def _is_admin(member: WorkspaceMember) -> bool:
    return member.role == MemberRole.ADMIN


def can_change_role(
    *,
    actor: WorkspaceMember | None,
    target: WorkspaceMember,
    new_role: MemberRole,
    member_count: int,
    admin_count: int,
    owner_user_id: UUID,
) -> PolicyDecision:
    if actor is None:
        return NOT_A_MEMBER
    if member_count <= 1 and new_role != MemberRole.ADMIN:
        return _deny_conflict("sole_member", "Cannot downgrade the only member of a workspace.")
    if not _is_admin(actor):
        return _deny_unauthorized("admin_required", "Only admins can change member roles.")
    if _is_admin(target) and new_role == MemberRole.ADMIN:
        return _deny_conflict("already_admin", "Member is already an admin.")
    if target.user_id == owner_user_id and new_role != MemberRole.ADMIN:
        return _deny_conflict("workspace_owner", "The workspace owner cannot be demoted.")
    if _is_admin(target) and new_role != MemberRole.ADMIN and admin_count <= 1:
        return _deny_conflict("last_admin", "A workspace must keep at least one admin.")
    return ALLOW


def can_remove_member(
    *,
    actor: WorkspaceMember | None,
    target: WorkspaceMember,
    member_count: int,
    owner_user_id: UUID,
) -> PolicyDecision:
    if actor is None:
        return NOT_A_MEMBER
    if member_count <= 1:
        return _deny_conflict("sole_member", "Cannot remove the only member of a workspace.")
    if actor.id != target.id and not _is_admin(actor):
        return _deny_unauthorized("admin_required", "Only admins can remove other members.")
    if target.user_id == owner_user_id:
        return _deny_conflict("workspace_owner", "The workspace owner cannot be removed.")
    return ALLOW


def can_manage_skills(
    *,
    actor: WorkspaceMember | None,
    target: WorkspaceMember,
) -> PolicyDecision:
    if actor is None:
        return NOT_A_MEMBER
    if actor.id != target.id and not _is_admin(actor):
        return _deny_unauthorized(
            "skills_access_denied",
            "Only the member or a workspace admin can manage these skills.",
        )
    return ALLOW


def can_manage_workspace(*, actor: WorkspaceMember | None) -> PolicyDecision:
    if actor is None:
        return NOT_A_MEMBER
    if not _is_admin(actor):
        return _deny_unauthorized("admin_required", "Only admins can manage this workspace.")
    return ALLOW


def can_write_tasks(*, actor: WorkspaceMember | None) -> PolicyDecision:
    return NOT_A_MEMBER if actor is None else ALLOW


POLICY_RULES: dict[str, Callable[..., PolicyDecision]] = {
    "member.change_role": can_change_role,
    "member.remove": can_remove_member,
    "member.skills": can_manage_skills,
    "workspace.manage": can_manage_workspace,
    "task.write": can_write_tasks,
}
