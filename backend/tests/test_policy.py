# ruff: noqa: INP001
"""Authorization rule ordering and outcomes."""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from crewboard.core.errors import ConflictError, UnauthorizedError
from crewboard.models.enums import MemberRole
from crewboard.models.workspace_members import WorkspaceMember
from crewboard.services.policy import (
    POLICY_RULES,
    can_change_role,
    can_manage_skills,
    can_manage_workspace,
    can_remove_member,
    can_write_tasks,
    enforce,
)

WORKSPACE_ID = uuid4()


def _member(role: MemberRole = MemberRole.MEMBER, user_id: UUID | None = None) -> WorkspaceMember:
    return WorkspaceMember(workspace_id=WORKSPACE_ID, user_id=user_id or uuid4(), role=role)


def test_non_member_is_denied_everything() -> None:
    target = _member()
    decisions = [
        can_change_role(
            actor=None,
            target=target,
            new_role=MemberRole.ADMIN,
            member_count=3,
            admin_count=1,
            owner_user_id=uuid4(),
        ),
        can_remove_member(actor=None, target=target, member_count=3, owner_user_id=uuid4()),
        can_manage_skills(actor=None, target=target),
        can_manage_workspace(actor=None),
        can_write_tasks(actor=None),
    ]

    assert all(decision.code == "not_a_member" for decision in decisions)
    assert all(decision.kind is UnauthorizedError for decision in decisions)


def test_sole_member_downgrade_is_checked_before_admin_rule() -> None:
    # A lone non-admin asking to downgrade gets the conflict, not the admin denial.
    actor = _member(MemberRole.MEMBER)

    decision = can_change_role(
        actor=actor,
        target=actor,
        new_role=MemberRole.MEMBER,
        member_count=1,
        admin_count=0,
        owner_user_id=uuid4(),
    )

    assert decision.code == "sole_member"
    assert decision.kind is ConflictError


def test_member_cannot_change_roles() -> None:
    decision = can_change_role(
        actor=_member(),
        target=_member(),
        new_role=MemberRole.ADMIN,
        member_count=3,
        admin_count=1,
        owner_user_id=uuid4(),
    )

    assert decision.code == "admin_required"


def test_promoting_an_admin_conflicts() -> None:
    decision = can_change_role(
        actor=_member(MemberRole.ADMIN),
        target=_member(MemberRole.ADMIN),
        new_role=MemberRole.ADMIN,
        member_count=3,
        admin_count=2,
        owner_user_id=uuid4(),
    )

    assert decision.code == "already_admin"


def test_owner_cannot_be_demoted() -> None:
    owner_id = uuid4()
    decision = can_change_role(
        actor=_member(MemberRole.ADMIN),
        target=_member(MemberRole.ADMIN, user_id=owner_id),
        new_role=MemberRole.MEMBER,
        member_count=3,
        admin_count=2,
        owner_user_id=owner_id,
    )

    assert decision.code == "workspace_owner"


def test_last_admin_cannot_be_demoted() -> None:
    admin = _member(MemberRole.ADMIN)
    decision = can_change_role(
        actor=admin,
        target=admin,
        new_role=MemberRole.MEMBER,
        member_count=2,
        admin_count=1,
        owner_user_id=uuid4(),
    )

    assert decision.code == "last_admin"


def test_admin_promotes_member() -> None:
    decision = can_change_role(
        actor=_member(MemberRole.ADMIN),
        target=_member(),
        new_role=MemberRole.ADMIN,
        member_count=2,
        admin_count=1,
        owner_user_id=uuid4(),
    )

    assert decision.allowed


def test_remove_rules() -> None:
    owner_id = uuid4()
    admin = _member(MemberRole.ADMIN, user_id=owner_id)
    member = _member()
    other = _member()

    assert can_remove_member(
        actor=admin, target=admin, member_count=1, owner_user_id=owner_id
    ).code == "sole_member"
    assert can_remove_member(
        actor=member, target=other, member_count=3, owner_user_id=owner_id
    ).code == "admin_required"
    assert can_remove_member(
        actor=admin, target=admin, member_count=3, owner_user_id=owner_id
    ).code == "workspace_owner"
    assert can_remove_member(
        actor=member, target=member, member_count=3, owner_user_id=owner_id
    ).allowed
    assert can_remove_member(
        actor=admin, target=other, member_count=3, owner_user_id=owner_id
    ).allowed


def test_skills_managed_by_self_or_admin() -> None:
    member = _member()

    assert can_manage_skills(actor=member, target=member).allowed
    assert can_manage_skills(actor=_member(MemberRole.ADMIN), target=member).allowed
    assert can_manage_skills(actor=_member(), target=member).code == "skills_access_denied"


def test_enforce_raises_decision_kind() -> None:
    with pytest.raises(ConflictError) as exc_info:
        enforce(
            can_remove_member(
                actor=_member(), target=_member(), member_count=1, owner_user_id=uuid4()
            ),
        )
    assert exc_info.value.code == "sole_member"

    enforce(can_write_tasks(actor=_member()))


def test_policy_table_names_every_rule() -> None:
    assert set(POLICY_RULES) == {
        "member.change_role",
        "member.remove",
        "member.skills",
        "workspace.manage",
        "task.write",
    }
