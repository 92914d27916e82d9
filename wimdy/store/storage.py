"""Persistence models for the Wimdy entity store."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from wimdy.common.time import utcnow
from wimdy.lifecycle.states import IssuePriority, IssueStatus, PullRequestStatus
from wimdy.store.errors import TimezoneAwareRequiredError

if typ.TYPE_CHECKING:
    import enum

    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class Base(DeclarativeBase):
    """Base declarative class for Wimdy models."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError.for_column_value()
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class LabelSet(TypeDecorator[frozenset[str]]):
    """Set of label strings stored as a sorted JSON array.

    The domain layer only ever sees ``frozenset[str]``; ordering exists
    solely so stored values are stable and diff friendly.
    """

    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: typ.Iterable[str] | None, dialect: Dialect
    ) -> list[str]:
        """Serialise labels as a sorted list."""
        return sorted(set(value or ()))

    def process_result_value(
        self, value: list[str] | None, dialect: Dialect
    ) -> frozenset[str]:
        """Load labels into an immutable set; ``NULL`` means no labels."""
        return frozenset(value or ())


def _enum_column(enum_cls: type[enum.StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=16,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class User(Base):
    """Registered account. Rows are created by the external sign-up flow."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(320), unique=True)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)

    repositories: Mapped[list[Repository]] = relationship(
        back_populates="owner", passive_deletes=True
    )


class Repository(Base):
    """Repository owned exclusively by one user."""

    __tablename__ = "repositories"
    __table_args__ = (
        Index("ix_repositories_user_id", "user_id"),
        Index("ix_repositories_is_private", "is_private"),
        Index("ix_repositories_language", "language"),
        Index("ix_repositories_user_name", "user_id", "name"),
        CheckConstraint("stars_count >= 0", name="ck_repositories_stars"),
        CheckConstraint("forks_count >= 0", name="ck_repositories_forks"),
        CheckConstraint("default_branch != ''", name="ck_repositories_branch"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(300), unique=True)
    description: Mapped[str | None] = mapped_column(Text(), default=None)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    is_private: Mapped[bool] = mapped_column(Boolean, default=False)
    is_fork: Mapped[bool] = mapped_column(Boolean, default=False)
    language: Mapped[str | None] = mapped_column(String(100), default=None)
    stars_count: Mapped[int] = mapped_column(Integer, default=0)
    forks_count: Mapped[int] = mapped_column(Integer, default=0)
    default_branch: Mapped[str] = mapped_column(String(100), default="main")
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )

    owner: Mapped[User] = relationship(back_populates="repositories")
    issues: Mapped[list[Issue]] = relationship(
        back_populates="repository", passive_deletes=True
    )
    pull_requests: Mapped[list[PullRequest]] = relationship(
        back_populates="repository", passive_deletes=True
    )
    commits: Mapped[list[Commit]] = relationship(
        back_populates="repository", passive_deletes=True
    )


class Issue(Base):
    """Issue filed against a repository."""

    __tablename__ = "issues"
    __table_args__ = (
        Index("ix_issues_repository_id", "repository_id"),
        Index("ix_issues_author_id", "author_id"),
        Index("ix_issues_assignee_id", "assignee_id"),
        Index("ix_issues_status", "status"),
        Index("ix_issues_repository_status", "repository_id", "status"),
        CheckConstraint(
            "(status = 'closed' AND closed_at IS NOT NULL)"
            " OR (status != 'closed' AND closed_at IS NULL)",
            name="ck_issues_closed_at_matches_status",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository_id: Mapped[int] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    assignee_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text(), default=None)
    status: Mapped[IssueStatus] = mapped_column(
        _enum_column(IssueStatus), default=IssueStatus.OPEN
    )
    priority: Mapped[IssuePriority] = mapped_column(
        _enum_column(IssuePriority), default=IssuePriority.MEDIUM
    )
    labels: Mapped[frozenset[str]] = mapped_column(LabelSet(), default=frozenset)
    closed_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), default=None)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )

    repository: Mapped[Repository] = relationship(back_populates="issues")
    author: Mapped[User] = relationship(foreign_keys=[author_id])
    assignee: Mapped[User | None] = relationship(foreign_keys=[assignee_id])


class PullRequest(Base):
    """Request to merge ``source_branch`` into ``target_branch``."""

    __tablename__ = "pull_requests"
    __table_args__ = (
        Index("ix_pull_requests_repository_id", "repository_id"),
        Index("ix_pull_requests_author_id", "author_id"),
        Index("ix_pull_requests_status", "status"),
        Index("ix_pull_requests_repository_status", "repository_id", "status"),
        CheckConstraint(
            "(status = 'merged' AND merged_at IS NOT NULL)"
            " OR (status != 'merged' AND merged_at IS NULL)",
            name="ck_pull_requests_merged_at_matches_status",
        ),
        CheckConstraint("commits_count >= 0", name="ck_pull_requests_commits"),
        CheckConstraint("files_changed >= 0", name="ck_pull_requests_files"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository_id: Mapped[int] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text(), default=None)
    source_branch: Mapped[str] = mapped_column(String(255))
    target_branch: Mapped[str] = mapped_column(String(255))
    status: Mapped[PullRequestStatus] = mapped_column(
        _enum_column(PullRequestStatus), default=PullRequestStatus.OPEN
    )
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False)
    commits_count: Mapped[int] = mapped_column(Integer, default=0)
    files_changed: Mapped[int] = mapped_column(Integer, default=0)
    merged_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), default=None)
    merged_by_id: Mapped[int | None] = mapped_column(
        "merged_by", ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )

    repository: Mapped[Repository] = relationship(back_populates="pull_requests")
    author: Mapped[User] = relationship(foreign_keys=[author_id])
    merged_by: Mapped[User | None] = relationship(foreign_keys=[merged_by_id])
    commits: Mapped[list[Commit]] = relationship(
        secondary="pull_request_commits",
        viewonly=True,
        order_by=lambda: [Commit.committed_at.desc(), Commit.id.desc()],
    )


class Commit(Base):
    """Recorded commit with a snapshot of its author's identity."""

    __tablename__ = "commits"
    __table_args__ = (
        Index("ix_commits_repository_id", "repository_id"),
        Index("ix_commits_author_id", "author_id"),
        Index("ix_commits_branch", "branch"),
        Index("ix_commits_repository_branch", "repository_id", "branch"),
        Index("ix_commits_committed_at", "committed_at"),
        CheckConstraint(
            "files_changed >= 0 AND additions >= 0 AND deletions >= 0",
            name="ck_commits_non_negative_stats",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository_id: Mapped[int] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    hash: Mapped[str] = mapped_column(String(64), unique=True)
    message: Mapped[str] = mapped_column(Text())
    branch: Mapped[str] = mapped_column(String(255))
    author_name: Mapped[str] = mapped_column(String(255))
    author_email: Mapped[str] = mapped_column(String(320))
    files_changed: Mapped[int] = mapped_column(Integer, default=0)
    additions: Mapped[int] = mapped_column(Integer, default=0)
    deletions: Mapped[int] = mapped_column(Integer, default=0)
    committed_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)

    repository: Mapped[Repository] = relationship(back_populates="commits")
    author: Mapped[User] = relationship()


class PullRequestCommit(Base):
    """Association between a pull request and one of its commits."""

    __tablename__ = "pull_request_commits"
    __table_args__ = (
        UniqueConstraint(
            "pull_request_id", "commit_id", name="uq_pull_request_commits_pair"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    pull_request_id: Mapped[int] = mapped_column(
        ForeignKey("pull_requests.id", ondelete="CASCADE"), nullable=False
    )
    commit_id: Mapped[int] = mapped_column(
        ForeignKey("commits.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


async def init_storage(engine: AsyncEngine) -> None:
    """Create all tables registered with Base if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
