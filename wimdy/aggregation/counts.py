"""Per-repository issue and pull request counters.

Counts are computed on read with one grouped query per child table; no
counter columns are maintained on the repository row.
"""

from __future__ import annotations

import typing as typ

from sqlalchemy import case, func, select

from wimdy.lifecycle.states import IssueStatus, PullRequestStatus
from wimdy.store.storage import Issue, PullRequest
from wimdy.views import RepositoryCounts

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def repository_counts(
    session: AsyncSession, repo_ids: typ.Collection[int]
) -> dict[int, RepositoryCounts]:
    """Return total and open issue/pull request counts per repository.

    Parameters
    ----------
    session
        Open session used for the two grouped queries.
    repo_ids
        Repositories to count for. Repositories without children are
        reported with zero counts.

    Returns
    -------
    dict[int, RepositoryCounts]
        Counts keyed by repository id, one entry per requested id.

    """
    if not repo_ids:
        return {}
    ids = list(repo_ids)

    issue_rows = await session.execute(
        select(
            Issue.repository_id,
            func.count(Issue.id),
            func.count(case((Issue.status == IssueStatus.OPEN, Issue.id))),
        )
        .where(Issue.repository_id.in_(ids))
        .group_by(Issue.repository_id)
    )
    issues = {repo_id: (total, open_) for repo_id, total, open_ in issue_rows}

    pull_rows = await session.execute(
        select(
            PullRequest.repository_id,
            func.count(PullRequest.id),
            func.count(
                case((PullRequest.status == PullRequestStatus.OPEN, PullRequest.id))
            ),
        )
        .where(PullRequest.repository_id.in_(ids))
        .group_by(PullRequest.repository_id)
    )
    pulls = {repo_id: (total, open_) for repo_id, total, open_ in pull_rows}

    counts: dict[int, RepositoryCounts] = {}
    for repo_id in ids:
        issues_total, issues_open = issues.get(repo_id, (0, 0))
        pulls_total, pulls_open = pulls.get(repo_id, (0, 0))
        counts[repo_id] = RepositoryCounts(
            issues_count=issues_total,
            pull_requests_count=pulls_total,
            open_issues_count=issues_open,
            open_pull_requests_count=pulls_open,
        )
    return counts
