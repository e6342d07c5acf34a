"""Assignee recommendation from skill matches, workload balance and readiness.

Scoring fuses three signals per candidate:

* the external skill match score (weight 0.5),
* workload balance, where the least loaded member scores 1 (weight 0.3),
* skill coverage of the task's required skills (weight 0.2).

Candidates are ranked by combined score with a stable sort, so ties keep the
order in which matches were supplied. Unmet prerequisites never block a
recommendation; they only add a warning to its reason.

All identifiers here are user ids. Membership ids must be translated before
matches reach this module.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from crewboard.models.enums import TaskStatus
from crewboard.services.dependencies import is_ready
from crewboard.services.workload import compute_workload, normalize_workload

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from crewboard.models.tasks import Task

MATCH_WEIGHT = 0.5
WORKLOAD_WEIGHT = 0.3
COVERAGE_WEIGHT = 0.2
BALANCED_WORKLOAD_THRESHOLD = 0.7
DEPENDENCY_WARNING = ". Warning: Dependencies not yet satisfied"


@dataclass(frozen=True)
class TaskSnapshot:
    """Immutable view of the task fields the optimizer reads."""

    id: str
    status: TaskStatus
    assignee_id: str | None = None
    depends_on: tuple[str, ...] = ()

    @classmethod
    def from_task(cls, task: Task) -> TaskSnapshot:
        return cls(
            id=str(task.id),
            status=TaskStatus(task.status),
            assignee_id=str(task.assignee_user_id) if task.assignee_user_id else None,
            depends_on=tuple(str(dep) for dep in task.depends_on or ()),
        )


@dataclass(frozen=True)
class CandidateMatch:
    """Externally computed fit between one member and one task."""

    member_id: str
    match_score: float
    skill_coverage: float


@dataclass(frozen=True)
class ScoredCandidate:
    member_id: str
    match_score: float
    skill_coverage: float
    workload: float
    workload_score: float
    combined_score: float


@dataclass(frozen=True)
class Recommendation:
    """Suggested assignee for a task; never persisted."""

    task_id: str
    assignee_id: str
    confidence: float
    reason: str


def _percent(value: float) -> int:
    # Half-up rounding, so 0.125 -> 13 rather than banker's 12.
    return math.floor(value * 100 + 0.5)


def rank_candidates(
    matches: Sequence[CandidateMatch],
    all_tasks: Iterable[TaskSnapshot],
    member_ids: Iterable[str],
) -> list[ScoredCandidate]:
    """Score every match and sort best first, preserving input order on ties."""
    workload = compute_workload(all_tasks, member_ids)
    normalized = normalize_workload(workload)
    low = min(workload.values(), default=0.0)
    spread = (max(workload.values(), default=0.0) - low) or 1.0
    scored = []
    for match in matches:
        # Candidates outside the tracked member set count as unloaded.
        load = workload.get(match.member_id, 0.0)
        workload_score = normalized.get(match.member_id, 1 - (load - low) / spread)
        combined = (
            match.match_score * MATCH_WEIGHT
            + workload_score * WORKLOAD_WEIGHT
            + match.skill_coverage * COVERAGE_WEIGHT
        )
        scored.append(
            ScoredCandidate(
                member_id=match.member_id,
                match_score=match.match_score,
                skill_coverage=match.skill_coverage,
                workload=load,
                workload_score=workload_score,
                combined_score=combined,
            ),
        )
    scored.sort(key=lambda candidate: candidate.combined_score, reverse=True)
    return scored


def build_reason(best: ScoredCandidate, *, ready: bool) -> str:
    reason = f"Best match based on skills ({_percent(best.match_score)}% match)"
    if best.workload_score > BALANCED_WORKLOAD_THRESHOLD:
        reason += " and balanced workload"
    if not ready:
        reason += DEPENDENCY_WARNING
    return reason


def recommend(
    task: TaskSnapshot,
    matches: Sequence[CandidateMatch],
    all_tasks: Sequence[TaskSnapshot],
    member_ids: Iterable[str],
) -> Recommendation | None:
    """Pick the best candidate for `task`, or None when there are no matches."""
    if not matches:
        return None
    return recommend_from_ranked(task, rank_candidates(matches, all_tasks, member_ids), all_tasks)


def recommend_from_ranked(
    task: TaskSnapshot,
    ranked: Sequence[ScoredCandidate],
    all_tasks: Sequence[TaskSnapshot],
) -> Recommendation | None:
    """Turn an existing `rank_candidates` result into a recommendation."""
    if not ranked:
        return None
    best = ranked[0]
    return Recommendation(
        task_id=task.id,
        assignee_id=best.member_id,
        confidence=min(max(best.combined_score, 0.0), 1.0),
        reason=build_reason(best, ready=is_ready(task, all_tasks)),
    )


def recommend_batch(
    tasks: Sequence[TaskSnapshot],
    matches_by_task: Mapping[str, Sequence[CandidateMatch]],
    member_ids: Iterable[str],
    existing_tasks: Sequence[TaskSnapshot] = (),
) -> dict[str, Recommendation]:
    """Recommend assignees for several tasks against one shared snapshot.

    Tasks are visited in ascending order of prerequisite count (stable), which
    approximates dependency order without being a topological sort. Workload
    and readiness use `existing_tasks + tasks` as given and are not updated as
    recommendations are made, so one member may be suggested for many tasks.
    Tasks without matches are omitted from the result.
    """
    member_ids = list(member_ids)
    snapshot = [*existing_tasks, *tasks]
    results: dict[str, Recommendation] = {}
    for task in sorted(tasks, key=lambda item: len(item.depends_on)):
        recommendation = recommend(task, matches_by_task.get(task.id, ()), snapshot, member_ids)
        if recommendation is not None:
            results[task.id] = recommendation
    return results
