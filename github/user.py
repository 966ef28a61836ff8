# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections.abc
import logging

import github3
import github3.exceptions
import github3.repos

import changelog.model as cm
import changelog.users
import github.retry

logger = logging.getLogger(__name__)


def tracker_user(user) -> cm.TrackerUser | None:
    '''
    converts the given github3-user (any of User, ShortUser, Contributor, ..) into a
    TrackerUser. Name and email are only available for "full" users.
    '''
    if not user or not getattr(user, 'login', None):
        return None

    return cm.TrackerUser(
        login=user.login,
        name=getattr(user, 'name', None) or None,
        email=getattr(user, 'email', None) or None,
        url=getattr(user, 'html_url', None),
        avatar_url=getattr(user, 'avatar_url', None),
    )


class GitHubUserLookup(changelog.users.UserLookup):
    '''
    looks up users known to a GitHub instance. Contributors are those of the given repository
    (most active first, limited to `max_contributors`).
    '''
    def __init__(
        self,
        github_api: github3.GitHub,
        repository: github3.repos.Repository | None=None,
        max_contributors: int=100,
    ):
        self.github_api = github_api
        self.repository = repository
        self.max_contributors = max_contributors

    @github.retry.retry_and_throttle
    def _search_login(self, email: str) -> str | None:
        for result in self.github_api.search_users(f'{email} in:email', number=1):
            return result.user.login
        return None

    @github.retry.retry_and_throttle
    def _user(self, login: str):
        return self.github_api.user(login)

    def user_by_email(self, email: str) -> cm.TrackerUser | None:
        try:
            if not (login := self._search_login(email)):
                return None
            return tracker_user(self._user(login))
        except (github3.exceptions.NotFoundError, github3.exceptions.UnprocessableEntity):
            logger.debug(f'no github user found for {email=}')
            return None
        except github3.exceptions.GitHubException as ghe:
            raise changelog.users.UserLookupError(f'failed to search user {email}: {ghe}') from ghe

    def user_by_login(self, login: str) -> cm.TrackerUser | None:
        try:
            return tracker_user(self._user(login))
        except github3.exceptions.NotFoundError:
            return None
        except github3.exceptions.GitHubException as ghe:
            raise changelog.users.UserLookupError(f'failed to lookup user {login}: {ghe}') from ghe

    def contributors(self) -> collections.abc.Iterable[cm.TrackerUser]:
        if not self.repository:
            return ()

        try:
            return [
                user for contributor in self.repository.contributors(number=self.max_contributors)
                if (user := tracker_user(contributor))
            ]
        except github3.exceptions.GitHubException as ghe:
            raise changelog.users.UserLookupError(
                f'failed to list contributors of {self.repository.full_name}: {ghe}'
            ) from ghe
