# SPDX-FileCopyrightText: 2019 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import logging

import dateutil.parser
import jira
import jira.exceptions
import requests.exceptions

import changelog.issues
import changelog.model as cm
import ci.util
import ctx

logger = logging.getLogger(__name__)


def from_cfg(
    jira_cfg: ctx.JiraCfg,
) -> jira.JIRA:
    if not jira_cfg or not jira_cfg.server:
        ci.util.fail('jira server must be configured')

    if jira_cfg.username and jira_cfg.token:
        return jira.JIRA(
            server=jira_cfg.server,
            basic_auth=(jira_cfg.username, jira_cfg.token),
        )
    if jira_cfg.token:
        return jira.JIRA(
            server=jira_cfg.server,
            token_auth=jira_cfg.token,
        )

    logger.warning(f'no jira credentials configured - using anonymous access to {jira_cfg.server}')
    return jira.JIRA(server=jira_cfg.server)


def _tracker_user(user) -> cm.TrackerUser | None:
    if not user:
        return None

    # jira-server identifies users by `name`, jira-cloud by `accountId`
    login = getattr(user, 'name', None) or getattr(user, 'accountId', None)
    if not login:
        return None

    return cm.TrackerUser(
        login=login,
        name=getattr(user, 'displayName', None),
        email=getattr(user, 'emailAddress', None),
    )


class JiraIssueTracker(changelog.issues.IssueTracker):
    kind = changelog.issues.IssueKind.JIRA

    def __init__(
        self,
        client: jira.JIRA,
        server: str,
        project: str | None=None,
    ):
        self.client = client
        self.server = server.rstrip('/')
        self.project = project

    def home_url(self) -> str:
        if self.project:
            return f'{self.server}/projects/{self.project}'
        return self.server

    def issue(self, issue_id: str) -> cm.TrackerIssue | None:
        if self.project and not issue_id.startswith(f'{self.project}-'):
            logger.debug(f'{issue_id} does not belong to project {self.project} - ignoring')
            return None

        try:
            issue = self.client.issue(issue_id)
        except jira.exceptions.JIRAError as je:
            if je.status_code == 404:
                return None
            raise changelog.issues.IssueLookupError(
                f'failed to retrieve issue {issue_id} from {self.server}: {je.text}'
            ) from je
        except requests.exceptions.RequestException as rqe:
            raise changelog.issues.IssueLookupError(
                f'failed to retrieve issue {issue_id} from {self.server}: {rqe}'
            ) from rqe

        fields = issue.fields

        if (created := getattr(fields, 'created', None)):
            created = dateutil.parser.isoparse(created)

        if (assignee := _tracker_user(getattr(fields, 'assignee', None))):
            assignees = [assignee]
        else:
            assignees = []

        status = getattr(fields, 'status', None)

        return cm.TrackerIssue(
            id=issue.key,
            link=f'{self.server}/browse/{issue.key}',
            title=fields.summary,
            body=getattr(fields, 'description', None),
            state=status.name.lower() if status else None,
            created=created,
            author=_tracker_user(getattr(fields, 'reporter', None)),
            assignees=assignees,
            labels=list(getattr(fields, 'labels', None) or ()),
        )
