"""Seed a Wimdy database with deterministic demo data.

Run against a fresh database::

    python -m wimdy.seed sqlite+aiosqlite:///wimdy.db --users 10 --seed 7

The schema is created when absent. Every row is derived from ``--seed``, so
two runs with the same arguments produce identical content. Closed issues and
merged pull requests are produced through the lifecycle state machines, so
their timestamps and merge fields obey the same invariants as rows written
through the services.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses as dc
import datetime as dt
import random
import typing as typ

from sqlalchemy.exc import IntegrityError

from wimdy.common.slug import repo_slug
from wimdy.lifecycle import (
    IssuePriority,
    IssueStatus,
    PullRequestStatus,
    check_issue_invariant,
    check_pull_request_invariant,
    transition_issue,
    transition_pull_request,
)
from wimdy.logging import configure_logging, get_logger, log_error, log_info
from wimdy.store import (
    Commit,
    Issue,
    PullRequest,
    PullRequestCommit,
    Repository,
    User,
    create_engine,
    create_session_factory,
    init_storage,
)

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)

SEED_EPOCH = dt.datetime(2024, 1, 1, tzinfo=dt.UTC)

_FIRST_NAMES = ("Ada", "Grace", "Linus", "Barbara", "Ken", "Margaret", "Guido")
_LAST_NAMES = ("Lovelace", "Hopper", "Torvalds", "Liskov", "Thompson", "Hamilton")
_WORDS = ("atlas", "beacon", "cinder", "drift", "ember", "fjord", "grove", "harbor")
_LANGUAGES = ("Python", "Rust", "Go", "TypeScript", "PHP", None)
_POPULAR = (
    ("awesome-framework", "A modern, fast, and secure web framework"),
    ("cool-library", "Lightweight utility library for everyday scripting"),
    ("super-app", "Full-stack application with modern architecture"),
)
_LABELS = ("bug", "enhancement", "documentation", "good first issue", "question")
_BRANCHES = ("main", "develop", "feature/login", "fix/typo")


@dc.dataclass(slots=True)
class SeedSummary:
    """Number of rows inserted per entity."""

    users: int = 0
    repositories: int = 0
    commits: int = 0
    issues: int = 0
    pull_requests: int = 0


class _DemoBuilder:
    """Generates rows from a seeded random source."""

    def __init__(self, session: AsyncSession, rng: random.Random) -> None:
        self._session = session
        self._rng = rng
        self._slugs: set[str] = set()
        self._clock = 0
        self.summary = SeedSummary()

    def _tick(self) -> dt.datetime:
        self._clock += self._rng.randint(1, 180)
        return SEED_EPOCH + dt.timedelta(minutes=self._clock)

    def _slug(self, name: str) -> str:
        slug = repo_slug(name, suffix_source=self._rng.randint)
        while slug in self._slugs:
            slug = repo_slug(name, suffix_source=self._rng.randint)
        self._slugs.add(slug)
        return slug

    async def user(self, name: str, email: str) -> User:
        user = User(name=name, email=email, created_at=self._tick())
        self._session.add(user)
        await self._session.flush()
        self.summary.users += 1
        return user

    async def repository(
        self,
        owner: User,
        name: str,
        *,
        description: str | None = None,
        stars: int | None = None,
    ) -> Repository:
        now = self._tick()
        repo = Repository(
            name=name,
            slug=self._slug(name),
            description=description,
            user_id=owner.id,
            is_private=stars is None and self._rng.random() < 0.2,
            is_fork=self._rng.random() < 0.1,
            language=self._rng.choice(_LANGUAGES),
            stars_count=self._rng.randint(0, 50) if stars is None else stars,
            forks_count=self._rng.randint(0, 10),
            default_branch="main",
            created_at=now,
            updated_at=now,
        )
        self._session.add(repo)
        await self._session.flush()
        self.summary.repositories += 1
        return repo

    async def commits(self, repo: Repository, author: User, count: int) -> list[Commit]:
        rows: list[Commit] = []
        for _ in range(count):
            committed_at = self._tick()
            rows.append(
                Commit(
                    repository_id=repo.id,
                    author_id=author.id,
                    hash=f"{self._rng.getrandbits(160):040x}",
                    message=f"Update {self._rng.choice(_WORDS)} handling",
                    branch=self._rng.choice(_BRANCHES),
                    author_name=author.name,
                    author_email=author.email,
                    files_changed=self._rng.randint(1, 12),
                    additions=self._rng.randint(0, 400),
                    deletions=self._rng.randint(0, 200),
                    committed_at=committed_at,
                    created_at=committed_at,
                )
            )
        self._session.add_all(rows)
        await self._session.flush()
        self.summary.commits += count
        return rows

    async def issues(
        self, repo: Repository, users: list[User], count: int, *, closed_ratio: float
    ) -> None:
        for index in range(count):
            author = self._rng.choice(users)
            now = self._tick()
            issue = Issue(
                repository_id=repo.id,
                author_id=author.id,
                assignee_id=self._rng.choice([None, *[user.id for user in users]]),
                title=f"{self._rng.choice(_WORDS).title()} issue #{index + 1}",
                description="Steps to reproduce are in the attached log.",
                status=IssueStatus.OPEN,
                priority=self._rng.choice(list(IssuePriority)),
                labels=frozenset(self._rng.sample(_LABELS, self._rng.randint(0, 2))),
                closed_at=None,
                created_at=now,
                updated_at=now,
            )
            if self._rng.random() < closed_ratio:
                transition_issue(issue, IssueStatus.CLOSED, now=self._tick())
            check_issue_invariant(issue)
            self._session.add(issue)
        await self._session.flush()
        self.summary.issues += count

    async def pull_requests(
        self,
        repo: Repository,
        users: list[User],
        commits: list[Commit],
        statuses: typ.Sequence[PullRequestStatus],
    ) -> None:
        for index, status in enumerate(statuses):
            author = self._rng.choice(users)
            now = self._tick()
            size = min(len(commits), self._rng.randint(1, 3))
            linked = self._rng.sample(commits, size)
            pull = PullRequest(
                repository_id=repo.id,
                author_id=author.id,
                title=f"Improve {self._rng.choice(_WORDS)} (#{index + 1})",
                description="Please review.",
                source_branch=f"feature/{self._rng.choice(_WORDS)}-{index + 1}",
                target_branch=repo.default_branch,
                status=PullRequestStatus.OPEN,
                is_draft=self._rng.random() < 0.15,
                commits_count=len(linked),
                files_changed=sum(commit.files_changed for commit in linked),
                merged_at=None,
                merged_by_id=None,
                created_at=now,
                updated_at=now,
            )
            if status is not PullRequestStatus.OPEN:
                transition_pull_request(
                    pull, status, actor_id=repo.user_id, now=self._tick()
                )
            check_pull_request_invariant(pull)
            self._session.add(pull)
            await self._session.flush()
            self._session.add_all(
                PullRequestCommit(pull_request_id=pull.id, commit_id=commit.id)
                for commit in linked
            )
        await self._session.flush()
        self.summary.pull_requests += len(statuses)


def _random_statuses(rng: random.Random, count: int) -> list[PullRequestStatus]:
    return [rng.choice(list(PullRequestStatus)) for _ in range(count)]


async def seed_demo_data(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    users: int = 10,
    seed: int = 0,
) -> SeedSummary:
    """Insert demo users, repositories, commits, issues and pull requests.

    Parameters
    ----------
    session_factory
        Session factory bound to a database whose schema already exists.
    users
        Number of generated users, in addition to the demo account.
    seed
        Seed for the random source; equal seeds give equal data.

    Returns
    -------
    SeedSummary
        Rows inserted per entity.

    """
    rng = random.Random(seed)  # noqa: S311 - demo data, not security sensitive
    async with session_factory() as session, session.begin():
        builder = _DemoBuilder(session, rng)
        people = [
            await builder.user(
                f"{rng.choice(_FIRST_NAMES)} {rng.choice(_LAST_NAMES)}",
                f"user{index}@wimdy.dev",
            )
            for index in range(1, users + 1)
        ]

        repos: list[Repository] = []
        for person in people:
            for _ in range(rng.randint(2, 5)):
                name = f"{rng.choice(_WORDS)}-{rng.choice(_WORDS)}"
                repos.append(await builder.repository(person, name))
        for name, description in _POPULAR:
            repos.append(
                await builder.repository(
                    rng.choice(people),
                    name,
                    description=description,
                    stars=rng.randint(500, 5000),
                )
            )

        repo_commits: dict[int, list[Commit]] = {}
        for repo in repos:
            repo_commits[repo.id] = await builder.commits(
                repo, rng.choice(people), rng.randint(5, 20)
            )
        for repo in repos[:8]:
            await builder.issues(repo, people, rng.randint(3, 12), closed_ratio=0.3)
        for repo in repos[:6]:
            await builder.pull_requests(
                repo,
                people,
                repo_commits[repo.id],
                _random_statuses(rng, rng.randint(2, 8)),
            )

        demo = await builder.user("Demo Developer", "demo@wimdy.dev")
        demo_repo = await builder.repository(
            demo,
            "wimdy-clone",
            description="A source hosting clone with issues and pull requests",
            stars=42,
        )
        demo_commits = await builder.commits(demo_repo, demo, 5)
        await builder.issues(demo_repo, [demo], 3, closed_ratio=0.0)
        await builder.pull_requests(
            demo_repo,
            [demo],
            demo_commits,
            [PullRequestStatus.OPEN, PullRequestStatus.OPEN, PullRequestStatus.MERGED],
        )
        return builder.summary


async def _run(database_url: str, *, users: int, seed: int) -> SeedSummary:
    engine = create_engine(database_url)
    try:
        await init_storage(engine)
        return await seed_demo_data(
            create_session_factory(engine), users=users, seed=seed
        )
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    """Seed the database named on the command line.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when the database already holds demo rows.

    """
    parser = argparse.ArgumentParser(description="Seed a Wimdy database")
    parser.add_argument("database_url", help="SQLAlchemy async database URL")
    parser.add_argument(
        "--users", type=int, default=10, help="Number of generated users"
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    args = parser.parse_args(argv)
    if args.users < 1:
        parser.error("--users must be positive")

    configure_logging("INFO")
    try:
        summary = asyncio.run(_run(args.database_url, users=args.users, seed=args.seed))
    except IntegrityError:
        log_error(logger, "Seeding failed: the database already contains demo rows")
        return 1

    log_info(
        logger,
        "Seeded %d users, %d repositories, %d commits, %d issues, %d pull requests",
        summary.users,
        summary.repositories,
        summary.commits,
        summary.issues,
        summary.pull_requests,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
