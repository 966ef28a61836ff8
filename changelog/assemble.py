# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections.abc
import dataclasses
import logging

import changelog.dependencies
import changelog.issues
import changelog.model as cm
import changelog.users

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = 'master'


@dataclasses.dataclass
class RunState:
    '''
    mutable state of exactly one changelog run. Must not be shared between runs.
    '''
    tracker: changelog.issues.IssueTracker
    resolver: changelog.users.UserResolver
    enricher: changelog.issues.IssueEnricher
    pattern: changelog.issues.IssuePattern
    logged_issue_kind: bool = False

    @staticmethod
    def create(
        tracker: changelog.issues.IssueTracker,
        resolver: changelog.users.UserResolver | None=None,
    ) -> 'RunState':
        resolver = resolver or changelog.users.UserResolver()
        return RunState(
            tracker=tracker,
            resolver=resolver,
            enricher=changelog.issues.IssueEnricher(tracker=tracker, resolver=resolver),
            pattern=changelog.issues.pattern_for_kind(tracker.kind),
        )


def full_commit_message_text(commit: cm.RawCommit) -> str:
    '''
    returns the text to search for issue references. Currently, this is only the commit's own
    message (messages of parent commits are not included).
    '''
    return commit.message or ''


def _raw_user(identity: cm.GitIdentity) -> cm.UserDetails:
    return cm.UserDetails(
        name=identity.name,
        email=identity.email,
    )


def _resolve_signature(
    identity: cm.GitIdentity,
    role: str,
    resolver: changelog.users.UserResolver,
) -> cm.UserDetails | None:
    if not identity or not identity.name or not identity.email:
        return None

    if (user := resolver.resolve(identity)):
        return user

    logger.debug(f'could not resolve git {role} {identity} - using raw identity')
    return _raw_user(identity)


def add_issues_and_pull_requests(
    assembly: cm.Assembly,
    commit_summary: cm.CommitSummary,
    commit: cm.RawCommit,
    state: RunState,
):
    if not state.logged_issue_kind:
        state.logged_issue_kind = True
        logger.info(f'Finding issues in commit messages using {state.pattern.kind} format')

    message = full_commit_message_text(commit)

    for issue_id in state.pattern.references(message):
        if not state.enricher.enrich(issue_id, assembly):
            continue
        if issue_id not in commit_summary.issueIds:
            commit_summary.issueIds.append(issue_id)


def add_commit(
    assembly: cm.Assembly,
    commit: cm.RawCommit,
    state: RunState,
    git_http_url: str | None=None,
    branch: str=DEFAULT_BRANCH,
) -> cm.CommitSummary:
    sha = commit.sha

    commit_summary = cm.CommitSummary(
        sha=sha,
        message=commit.message,
        url=f'{git_http_url}/commit/{sha}' if git_http_url else None,
        branch=branch,
        author=_resolve_signature(commit.author, 'author', state.resolver),
        committer=_resolve_signature(commit.committer, 'committer', state.resolver),
    )

    try:
        add_issues_and_pull_requests(
            assembly=assembly,
            commit_summary=commit_summary,
            commit=commit,
            state=state,
        )
    except (changelog.issues.IssueLookupError, changelog.users.UserLookupError) as e:
        logger.warning(f'Failed to enrich commit {sha} with issues: {e}')

    assembly.dependency_updates.extend(
        changelog.dependencies.parse_dependency_updates(commit.message)
    )
    assembly.commits.append(commit_summary)

    return commit_summary


def assemble_commits(
    commits: collections.abc.Iterable[cm.RawCommit],
    state: RunState,
    include_merge_commits: bool=False,
    git_http_url: str | None=None,
    branch: str=DEFAULT_BRANCH,
    assembly: cm.Assembly | None=None,
) -> cm.Assembly:
    '''
    creates commit summaries for the given commits (retaining their order), and collects
    referenced issues, pull requests and dependency updates.

    merge commits are skipped, unless `include_merge_commits` is set.
    '''
    if assembly is None:
        assembly = cm.Assembly()

    for commit in commits:
        if commit.is_merge_commit and not include_merge_commits:
            logger.debug(f'skipping merge commit {commit.sha}')
            continue

        add_commit(
            assembly=assembly,
            commit=commit,
            state=state,
            git_http_url=git_http_url,
            branch=branch,
        )

    return assembly
