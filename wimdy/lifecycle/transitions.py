"""State machines for issues and pull requests.

Issue
    ``open -> closed`` stamps ``closed_at``; ``closed -> open`` clears it.
    Requesting the current state changes nothing.

Pull request
    ``open -> merged`` stamps ``merged_at`` and ``merged_by``;
    ``open -> closed`` and ``closed -> open`` touch no merge fields.
    ``merged`` is terminal and ``closed -> merged`` is rejected.

Both machines mutate the record handed to them and return the
:class:`Transition` that took place, so services can log real changes only.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from wimdy.lifecycle.errors import InvalidTransitionError, LifecycleInvariantError
from wimdy.lifecycle.states import IssueStatus, PullRequestStatus

if typ.TYPE_CHECKING:
    import datetime as dt


class IssueRecord(typ.Protocol):
    """Issue fields driven by the lifecycle."""

    status: IssueStatus
    closed_at: dt.datetime | None


class PullRequestRecord(typ.Protocol):
    """Pull request fields driven by the lifecycle."""

    status: PullRequestStatus
    merged_at: dt.datetime | None
    merged_by_id: int | None


@dataclasses.dataclass(frozen=True, slots=True)
class Transition[S]:
    """A status change, possibly from a state to itself."""

    previous: S
    current: S

    @property
    def changed(self) -> bool:
        """Return whether the status actually changed."""
        return self.previous != self.current


PULL_REQUEST_TRANSITIONS: frozenset[tuple[PullRequestStatus, PullRequestStatus]] = (
    frozenset(
        {
            (PullRequestStatus.OPEN, PullRequestStatus.MERGED),
            (PullRequestStatus.OPEN, PullRequestStatus.CLOSED),
            (PullRequestStatus.CLOSED, PullRequestStatus.OPEN),
        }
    )
)


def transition_issue(
    issue: IssueRecord, target: IssueStatus, *, now: dt.datetime
) -> Transition[IssueStatus]:
    """Move ``issue`` to ``target``, maintaining ``closed_at``."""
    previous = issue.status
    if target == previous:
        return Transition(previous, previous)

    match target:
        case IssueStatus.CLOSED:
            issue.closed_at = now
        case IssueStatus.OPEN:
            issue.closed_at = None
        case _:
            typ.assert_never(target)
    issue.status = target
    return Transition(previous, target)


def transition_pull_request(
    pull_request: PullRequestRecord,
    target: PullRequestStatus,
    *,
    actor_id: int,
    now: dt.datetime,
) -> Transition[PullRequestStatus]:
    """Move ``pull_request`` to ``target``, maintaining the merge fields.

    Raises
    ------
    InvalidTransitionError
        If the pull request is already merged, or ``target`` is not
        reachable from the current status.

    """
    previous = pull_request.status
    if previous == PullRequestStatus.MERGED:
        raise InvalidTransitionError(previous, target)
    if target == previous:
        return Transition(previous, previous)
    if (previous, target) not in PULL_REQUEST_TRANSITIONS:
        raise InvalidTransitionError(previous, target)

    match target:
        case PullRequestStatus.MERGED:
            pull_request.merged_at = now
            pull_request.merged_by_id = actor_id
        case PullRequestStatus.OPEN | PullRequestStatus.CLOSED:
            pass
        case _:
            typ.assert_never(target)
    pull_request.status = target
    return Transition(previous, target)


def check_issue_invariant(issue: IssueRecord) -> None:
    """Raise unless ``closed_at`` is set exactly when the issue is closed."""
    closed = issue.status == IssueStatus.CLOSED
    if closed != (issue.closed_at is not None):
        msg = f"issue status {issue.status} disagrees with closed_at"
        raise LifecycleInvariantError(msg)


def check_pull_request_invariant(pull_request: PullRequestRecord) -> None:
    """Raise unless the merge fields are set exactly when merged."""
    merged = pull_request.status == PullRequestStatus.MERGED
    if not (
        merged
        == (pull_request.merged_at is not None)
        == (pull_request.merged_by_id is not None)
    ):
        msg = f"pull request status {pull_request.status} disagrees with merge fields"
        raise LifecycleInvariantError(msg)
