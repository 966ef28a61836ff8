# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections

import pytest

import changelog.issues
import changelog.model as cm
import changelog.users


class FakeTracker(changelog.issues.IssueTracker):
    '''
    issue tracker serving issues from a dict. Issue-ids contained in `failing` raise
    IssueLookupError, issue-ids contained in `errors` raise the mapped exception.
    Counts lookups per issue-id.
    '''
    def __init__(
        self,
        issues: dict[str, cm.TrackerIssue]=None,
        failing: set[str]=frozenset(),
        errors: dict[str, Exception]=None,
        kind: changelog.issues.IssueKind=changelog.issues.IssueKind.GIT,
    ):
        self.issues = issues or {}
        self.failing = failing
        self.errors = errors or {}
        self.kind = kind
        self.lookups = collections.Counter()

    def home_url(self) -> str:
        return 'https://github.example/org/repo'

    def issue(self, issue_id: str) -> cm.TrackerIssue | None:
        self.lookups[issue_id] += 1
        if issue_id in self.failing:
            raise changelog.issues.IssueLookupError(f'failed to lookup {issue_id}')
        if issue_id in self.errors:
            raise self.errors[issue_id]
        return self.issues.get(issue_id)


class FakeUserLookup(changelog.users.UserLookup):
    def __init__(
        self,
        users: list[cm.TrackerUser]=(),
        contributors: list[cm.TrackerUser]=(),
        failing_emails: set[str]=frozenset(),
    ):
        self.users = list(users)
        self._contributors = list(contributors)
        self.failing_emails = failing_emails
        self.calls = collections.Counter()

    def user_by_email(self, email: str) -> cm.TrackerUser | None:
        self.calls['user_by_email'] += 1
        if email in self.failing_emails:
            raise changelog.users.UserLookupError(f'failed to lookup {email}')
        for user in self.users:
            if user.email and user.email.lower() == email.lower():
                return user
        return None

    def user_by_login(self, login: str) -> cm.TrackerUser | None:
        self.calls['user_by_login'] += 1
        for user in self.users:
            if user.login == login:
                return user
        return None

    def contributors(self):
        self.calls['contributors'] += 1
        return self._contributors


def tracker_issue(issue_id: str, pull_request=False, **kwargs) -> cm.TrackerIssue:
    defaults = dict(
        link=f'https://github.example/org/repo/issues/{issue_id}',
        title=f'issue {issue_id}',
        state='open',
        author=cm.TrackerUser(login='reporter'),
        assignees=[],
    )
    return cm.TrackerIssue(
        id=issue_id,
        pull_request=pull_request,
        **(defaults | kwargs),
    )


def raw_commit(
    sha: str,
    message: str,
    author=cm.GitIdentity(name='Jane Doe', email='jane@example.org'),
    committer=None,
    parent_count: int=1,
) -> cm.RawCommit:
    return cm.RawCommit(
        sha=sha,
        message=message,
        author=author,
        committer=committer or author,
        parent_count=parent_count,
    )


@pytest.fixture
def fake_tracker():
    return FakeTracker


@pytest.fixture
def fake_user_lookup():
    return FakeUserLookup


@pytest.fixture
def make_tracker_issue():
    return tracker_issue


@pytest.fixture
def make_raw_commit():
    return raw_commit
