# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import dataclasses
import enum
import logging
import re
import threading

import changelog.model as cm
import changelog.users

logger = logging.getLogger(__name__)


class IssueKind(enum.StrEnum):
    '''
    GIT: issues are referenced by number (`#123`), e.g. GitHub issues and pull requests
    JIRA: issues are referenced by project key (`ABC-123`)
    '''
    GIT = 'git'
    JIRA = 'jira'


class IssueLookupError(RuntimeError):
    pass


@dataclasses.dataclass(frozen=True)
class IssuePattern:
    kind: IssueKind
    regex: re.Pattern
    strip_prefix: str = ''

    def references(self, text: str) -> list[str]:
        '''
        returns all issue references found in the given text, in order of appearance and
        without duplicates
        '''
        if not text:
            return []

        refs = (
            m.group(0).removeprefix(self.strip_prefix)
            for m in self.regex.finditer(text)
        )
        return list(dict.fromkeys(refs))


NUMERIC_PATTERN = IssuePattern(
    kind=IssueKind.GIT,
    regex=re.compile(r'#\d+'),
    strip_prefix='#',
)
PROJECT_KEY_PATTERN = IssuePattern(
    kind=IssueKind.JIRA,
    regex=re.compile(r'[A-Z][A-Z]+-\d+'),
)

_patterns_by_kind = {
    IssueKind.GIT: NUMERIC_PATTERN,
    IssueKind.JIRA: PROJECT_KEY_PATTERN,
}


def pattern_for_kind(kind: IssueKind) -> IssuePattern:
    return _patterns_by_kind[IssueKind(kind)]


def extract_issue_references(
    message: str,
    kind: IssueKind=IssueKind.GIT,
) -> list[str]:
    return pattern_for_kind(kind).references(message)


class IssueTracker:
    '''
    base-class for issue-tracker adapters.

    `issue` is expected to return None if there is no issue with the given id, and to raise
    `IssueLookupError` for any other kind of failure.
    '''
    kind: IssueKind = IssueKind.GIT

    def issue(self, issue_id: str) -> cm.TrackerIssue | None:
        raise NotImplementedError

    def home_url(self) -> str:
        raise NotImplementedError


class IssueEnricher:
    '''
    expands issue references into issue summaries. Each distinct reference is looked up from
    the issue tracker at most once per instance (which is intended to live for exactly one run).
    '''
    def __init__(
        self,
        tracker: IssueTracker,
        resolver: changelog.users.UserResolver,
    ):
        self.tracker = tracker
        self.resolver = resolver
        # issue-id -> summary (None if lookup failed)
        self._issues: dict[str, cm.IssueSummary | None] = {}
        self._lock = threading.Lock()

    def enrich(
        self,
        issue_id: str,
        accumulator: cm.Assembly,
    ) -> cm.IssueSummary | None:
        '''
        returns the summary for the given issue-id, or None if it could not be retrieved.

        upon first successful retrieval, the summary is appended to either `issues` or
        `pull_requests` of the given accumulator.
        '''
        with self._lock:
            if issue_id in self._issues:
                return self._issues[issue_id]

            # mark as seen before lookup, so failed lookups are not repeated
            self._issues[issue_id] = None

            summary, is_pull_request = self._lookup(issue_id)
            if not summary:
                return None

            self._issues[issue_id] = summary
            if is_pull_request:
                accumulator.pull_requests.append(summary)
            else:
                accumulator.issues.append(summary)

            return summary

    def _lookup(self, issue_id: str) -> tuple[cm.IssueSummary | None, bool]:
        home_url = self.tracker.home_url()
        try:
            issue = self.tracker.issue(issue_id)
        except Exception as e:
            # a single failing lookup must not abort the run
            logger.warning(
                f'Failed to lookup issue {issue_id} in issue tracker {home_url} due to {e}'
            )
            return None, False

        if not issue:
            logger.warning(f'Failed to find issue {issue_id} for repository {home_url}')
            return None, False

        return self._summarise(issue_id, issue), issue.pull_request

    def _summarise(self, issue_id: str, issue: cm.TrackerIssue) -> cm.IssueSummary:
        home_url = self.tracker.home_url()

        user = None
        if issue.author:
            if not (user := self.resolver.resolve_tracker_user(issue.author)):
                logger.warning(
                    f'Failed to resolve user {issue.author.login} for issue {issue_id} '
                    f'repository {home_url}'
                )

        closed_by = None
        if issue.closed_by:
            if not (closed_by := self.resolver.resolve_tracker_user(issue.closed_by)):
                logger.warning(
                    f'Failed to resolve closedBy user {issue.closed_by.login} for issue '
                    f'{issue_id} repository {home_url}'
                )
        elif issue.state == 'closed':
            logger.warning(
                f'Failed to find closedBy user for issue {issue_id} repository {home_url}'
            )

        if issue.assignees is None:
            logger.warning(f'Failed to find assignees for issue {issue_id} repository {home_url}')
            assignees = []
        else:
            assignees = self.resolver.resolve_all(issue.assignees)

        return cm.IssueSummary(
            id=issue_id,
            url=issue.link,
            title=issue.title,
            body=issue.body,
            state=issue.state or None,
            user=user,
            closedBy=closed_by,
            assignees=assignees,
            labels=[cm.IssueLabel(name=label) for label in issue.labels],
            creationTimestamp=cm.format_timestamp(issue.created),
        )

