# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


'''
issue-tracker backed by the issues (and pull requests) of a GitHub repository
'''

import logging

import github3
import github3.exceptions
import github3.issues.issue
import github3.repos

import changelog.issues
import changelog.model as cm
import github.user

logger = logging.getLogger(__name__)


class GitHubIssueTracker(changelog.issues.IssueTracker):
    kind = changelog.issues.IssueKind.GIT

    def __init__(
        self,
        repository: github3.repos.Repository,
    ):
        self.repository = repository

    def home_url(self) -> str:
        return self.repository.html_url

    def issue(self, issue_id: str) -> cm.TrackerIssue | None:
        try:
            number = int(issue_id)
        except ValueError:
            logger.debug(f'not a valid github issue number: {issue_id}')
            return None

        try:
            issue = self.repository.issue(number)
        except github3.exceptions.NotFoundError:
            return None
        except github3.exceptions.GitHubException as ghe:
            raise changelog.issues.IssueLookupError(
                f'failed to retrieve issue {issue_id} from {self.home_url()}: {ghe}'
            ) from ghe

        if not issue:
            return None

        return tracker_issue(issue)


def tracker_issue(issue: github3.issues.issue.Issue) -> cm.TrackerIssue:
    assignees = getattr(issue, 'assignees', None)
    if assignees is not None:
        assignees = [github.user.tracker_user(assignee) for assignee in assignees]

    return cm.TrackerIssue(
        id=str(issue.number),
        link=issue.html_url,
        title=issue.title,
        body=issue.body,
        state=issue.state,
        created=issue.created_at,
        author=github.user.tracker_user(issue.user),
        closed_by=github.user.tracker_user(getattr(issue, 'closed_by', None)),
        assignees=assignees,
        labels=[label.name for label in issue.original_labels],
        pull_request=bool(issue.pull_request_urls),
    )
