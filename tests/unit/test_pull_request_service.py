"""Unit tests for PullRequestService."""

from __future__ import annotations

import typing as typ

import pytest

from wimdy.common.errors import NotFoundError, ValidationError
from wimdy.lifecycle import InvalidTransitionError, PullRequestStatus
from wimdy.policy import Actor, AuthenticationRequiredError, PermissionDeniedError
from wimdy.pulls import (
    CreatePullRequestInput,
    LinkCommitsInput,
    PullRequestService,
    UpdatePullRequestInput,
)

if typ.TYPE_CHECKING:
    from tests.conftest import People
    from tests.unit.conftest import CreateRepoFn, RecordCommitFn
    from wimdy.views import PullRequestView


def _open_input(
    source: str = "feature/login", target: str = "main"
) -> CreatePullRequestInput:
    return CreatePullRequestInput(
        title="Add login", source_branch=source, target_branch=target
    )


def _update(
    pull: PullRequestView, status: PullRequestStatus, **changes: typ.Any
) -> UpdatePullRequestInput:
    fields: dict[str, typ.Any] = {
        "title": pull.title,
        "source_branch": pull.source_branch,
        "target_branch": pull.target_branch,
        "status": status,
        "description": pull.description,
        "is_draft": pull.is_draft,
    }
    fields.update(changes)
    return UpdatePullRequestInput(**fields)


async def _open(
    service: PullRequestService, actor: Actor, slug: str
) -> PullRequestView:
    return await service.create_pull_request(actor, slug, _open_input())


class TestCreatePullRequest:
    """Tests for PullRequestService.create_pull_request."""

    @pytest.mark.asyncio
    async def test_opens_with_empty_merge_fields(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """New pull requests are open and carry no merge data."""
        repo = await create_repo(people.alice)

        pull = await _open(pull_request_service, people.bob, repo.slug)

        assert pull.status is PullRequestStatus.OPEN, "pull requests start open"
        assert pull.merged_at is None, "merged_at must be empty"
        assert pull.merged_by is None, "merged_by must be empty"
        assert pull.commits_count == 0, "no commits linked yet"
        assert pull.author.id == people.bob.user_id, "actor is the author"

    @pytest.mark.asyncio
    async def test_branches_must_differ(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Source and target branches must not be the same."""
        repo = await create_repo(people.alice)
        with pytest.raises(ValidationError) as excinfo:
            await pull_request_service.create_pull_request(
                people.bob, repo.slug, _open_input(source="main", target="main")
            )
        assert "target_branch" in excinfo.value.by_field(), "expected branch issue"

    @pytest.mark.asyncio
    async def test_blank_fields_are_reported(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Blank titles and branches are reported together."""
        repo = await create_repo(people.alice)
        with pytest.raises(ValidationError) as excinfo:
            await pull_request_service.create_pull_request(
                people.bob,
                repo.slug,
                CreatePullRequestInput(title="", source_branch=" ", target_branch=""),
            )
        assert set(excinfo.value.by_field()) == {
            "title",
            "source_branch",
            "target_branch",
        }

    @pytest.mark.asyncio
    async def test_private_repository_is_hidden(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Outsiders cannot open pull requests against a private repository."""
        repo = await create_repo(people.alice, is_private=True)
        with pytest.raises(NotFoundError):
            await _open(pull_request_service, people.bob, repo.slug)

    @pytest.mark.asyncio
    async def test_anonymous_cannot_open(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Visitors must sign in before opening a pull request."""
        repo = await create_repo(people.alice)
        with pytest.raises(AuthenticationRequiredError):
            await _open(pull_request_service, people.anonymous, repo.slug)



class TestMerge:
    """Tests for merging and the terminal merged state."""

    @pytest.mark.asyncio
    async def test_owner_merge_records_merger(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """The repository owner merges someone else's pull request."""
        repo = await create_repo(people.alice)
        pull = await _open(pull_request_service, people.bob, repo.slug)

        merged = await pull_request_service.update_pull_request(
            people.alice, repo.slug, pull.id, _update(pull, PullRequestStatus.MERGED)
        )

        assert merged.status is PullRequestStatus.MERGED, "status should be merged"
        assert merged.merged_at is not None, "merged_at should be stamped"
        assert merged.merged_by is not None, "merged_by should be set"
        assert merged.merged_by.id == people.alice.user_id, "merger is the actor"
        assert merged.author.id == people.bob.user_id, "author is unchanged"

    @pytest.mark.asyncio
    async def test_merged_rejects_reopen(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Reopening a merged pull request fails and changes nothing."""
        repo = await create_repo(people.alice)
        pull = await _open(pull_request_service, people.bob, repo.slug)
        merged = await pull_request_service.update_pull_request(
            people.bob, repo.slug, pull.id, _update(pull, PullRequestStatus.MERGED)
        )

        with pytest.raises(InvalidTransitionError):
            await pull_request_service.update_pull_request(
                people.bob,
                repo.slug,
                pull.id,
                _update(merged, PullRequestStatus.OPEN, title="sneaky"),
            )

        current = await pull_request_service.get_pull_request(
            people.bob, repo.slug, pull.id
        )
        assert current.status is PullRequestStatus.MERGED, "still merged"
        assert current.merged_at == merged.merged_at, "merged_at unchanged"
        assert current.title == pull.title, "rejected update must not apply"

    @pytest.mark.asyncio
    async def test_closed_cannot_merge_directly(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """A closed pull request must be reopened before merging."""
        repo = await create_repo(people.alice)
        pull = await _open(pull_request_service, people.bob, repo.slug)
        closed = await pull_request_service.update_pull_request(
            people.bob, repo.slug, pull.id, _update(pull, PullRequestStatus.CLOSED)
        )

        with pytest.raises(InvalidTransitionError):
            await pull_request_service.update_pull_request(
                people.bob,
                repo.slug,
                pull.id,
                _update(closed, PullRequestStatus.MERGED),
            )

    @pytest.mark.asyncio
    async def test_reader_merges_owner_pull_request(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """A signed-in reader merges a pull request opened by the owner."""
        repo = await create_repo(people.alice)
        pull = await _open(pull_request_service, people.alice, repo.slug)

        merged = await pull_request_service.update_pull_request(
            people.bob, repo.slug, pull.id, _update(pull, PullRequestStatus.MERGED)
        )

        assert merged.status is PullRequestStatus.MERGED, "status should be merged"
        assert merged.merged_by is not None, "merged_by should be set"
        assert merged.merged_by.id == people.bob.user_id, "merger is the reader"
        assert merged.author.id == people.alice.user_id, "author is unchanged"
        with pytest.raises(InvalidTransitionError):
            await pull_request_service.update_pull_request(
                people.alice,
                repo.slug,
                pull.id,
                _update(merged, PullRequestStatus.OPEN),
            )

    @pytest.mark.asyncio
    async def test_reader_cannot_edit_while_merging(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Merging grants a reader no right to change other attributes."""
        repo = await create_repo(people.alice)
        pull = await _open(pull_request_service, people.bob, repo.slug)

        with pytest.raises(PermissionDeniedError):
            await pull_request_service.update_pull_request(
                people.carol,
                repo.slug,
                pull.id,
                _update(pull, PullRequestStatus.MERGED, title="Renamed"),
            )

        current = await pull_request_service.get_pull_request(
            people.carol, repo.slug, pull.id
        )
        assert current.status is PullRequestStatus.OPEN, "denied merge must not apply"
        assert current.title == pull.title, "denied edit must not apply"

    @pytest.mark.asyncio
    async def test_reader_cannot_close(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Only merging is open to readers; closing stays with author and owner."""
        repo = await create_repo(people.alice)
        pull = await _open(pull_request_service, people.bob, repo.slug)

        with pytest.raises(PermissionDeniedError):
            await pull_request_service.update_pull_request(
                people.carol,
                repo.slug,
                pull.id,
                _update(pull, PullRequestStatus.CLOSED),
            )

    @pytest.mark.asyncio
    async def test_anonymous_cannot_merge(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Merging requires a signed-in actor."""
        repo = await create_repo(people.alice)
        pull = await _open(pull_request_service, people.bob, repo.slug)

        with pytest.raises(AuthenticationRequiredError):
            await pull_request_service.update_pull_request(
                people.anonymous,
                repo.slug,
                pull.id,
                _update(pull, PullRequestStatus.MERGED),
            )

    @pytest.mark.asyncio
    async def test_unknown_user_cannot_merge(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """An identity naming no stored user is not a signed-in reader."""
        repo = await create_repo(people.alice)
        pull = await _open(pull_request_service, people.bob, repo.slug)

        with pytest.raises(AuthenticationRequiredError):
            await pull_request_service.update_pull_request(
                Actor.for_user(987654),
                repo.slug,
                pull.id,
                _update(pull, PullRequestStatus.MERGED),
            )



class TestLinkCommits:
    """Tests for PullRequestService.link_commits."""

    @pytest.mark.asyncio
    async def test_links_and_recomputes_stats(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        record_commit: RecordCommitFn,
        people: People,
    ) -> None:
        """Linked commits update the commit and file counters."""
        repo = await create_repo(people.alice)
        first = await record_commit(people.alice, repo.slug, files_changed=3)
        second = await record_commit(
            people.alice, repo.slug, minutes=5, files_changed=4
        )
        pull = await _open(pull_request_service, people.alice, repo.slug)

        detail = await pull_request_service.link_commits(
            people.alice,
            repo.slug,
            pull.id,
            LinkCommitsInput(hashes=[first.hash, second.hash, first.hash]),
        )
        again = await pull_request_service.link_commits(
            people.alice, repo.slug, pull.id, LinkCommitsInput(hashes=[first.hash])
        )

        assert detail.commits_count == 2, "duplicates are linked once"
        assert detail.files_changed == 7, "files_changed sums linked commits"
        assert [commit.hash for commit in detail.commits] == [
            second.hash,
            first.hash,
        ], "commits are shown newest first"
        assert again.commits_count == 2, "relinking is idempotent"

    @pytest.mark.asyncio
    async def test_unknown_hashes_are_reported(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        record_commit: RecordCommitFn,
        people: People,
    ) -> None:
        """Hashes of other repositories count as unknown."""
        repo = await create_repo(people.alice)
        other = await create_repo(people.alice, "other")
        foreign = await record_commit(people.alice, other.slug)
        pull = await _open(pull_request_service, people.alice, repo.slug)

        with pytest.raises(ValidationError) as excinfo:
            await pull_request_service.link_commits(
                people.alice,
                repo.slug,
                pull.id,
                LinkCommitsInput(hashes=[foreign.hash, "deadbeef"]),
            )
        assert excinfo.value.by_field() == {
            "hashes": [f"unknown commit {foreign.hash}", "unknown commit deadbeef"]
        }

    @pytest.mark.asyncio
    async def test_merged_pull_request_is_frozen(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        record_commit: RecordCommitFn,
        people: People,
    ) -> None:
        """Commits cannot be linked after merging."""
        repo = await create_repo(people.alice)
        commit = await record_commit(people.alice, repo.slug)
        pull = await _open(pull_request_service, people.alice, repo.slug)
        await pull_request_service.update_pull_request(
            people.alice, repo.slug, pull.id, _update(pull, PullRequestStatus.MERGED)
        )

        with pytest.raises(ValidationError):
            await pull_request_service.link_commits(
                people.alice, repo.slug, pull.id, LinkCommitsInput(hashes=[commit.hash])
            )


class TestListAndDelete:
    """Tests for listing and deleting pull requests."""

    @pytest.mark.asyncio
    async def test_list_filters_by_status(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """The status filter narrows the listing."""
        repo = await create_repo(people.alice)
        kept = await _open(pull_request_service, people.bob, repo.slug)
        closed = await _open(pull_request_service, people.bob, repo.slug)
        await pull_request_service.update_pull_request(
            people.bob, repo.slug, closed.id, _update(closed, PullRequestStatus.CLOSED)
        )

        page = await pull_request_service.list_pull_requests(
            people.carol, repo.slug, status=PullRequestStatus.OPEN
        )

        assert [item.id for item in page.items] == [kept.id], "only open listed"

    @pytest.mark.asyncio
    async def test_owner_deletes_pull_request(
        self,
        pull_request_service: PullRequestService,
        create_repo: CreateRepoFn,
        record_commit: RecordCommitFn,
        people: People,
    ) -> None:
        """The repository owner may delete a linked pull request."""
        repo = await create_repo(people.alice)
        commit = await record_commit(people.alice, repo.slug)
        pull = await _open(pull_request_service, people.bob, repo.slug)
        await pull_request_service.link_commits(
            people.bob, repo.slug, pull.id, LinkCommitsInput(hashes=[commit.hash])
        )

        await pull_request_service.delete_pull_request(people.alice, repo.slug, pull.id)

        with pytest.raises(NotFoundError):
            await pull_request_service.get_pull_request(
                people.alice, repo.slug, pull.id
            )
