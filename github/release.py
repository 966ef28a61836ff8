# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
release-store backed by github3.py's release-API
'''

import logging

import github3.exceptions
import github3.repos
import github3.repos.release

import changelog.publish

logger = logging.getLogger(__name__)

# max. amount of codepoints accepted by GitHub for release bodies (determined empirically, see
# https://github.com/dead-claudia/github-limits)
RELEASE_BODY_LIMIT = 125000


def body_or_replacement(
    body: str,
    replacement: str='body was too large (limit: {limit} / actual: {actual})',
    limit: int=RELEASE_BODY_LIMIT,
) -> tuple[str, bool]:
    '''
    convenience function that will check whether given body is short enough to be accepted
    by GitHub's API. If so, passed body will be returned as first element of returned tuple, else
    replacement value.

    The second value of returned tuple will indicate whether original body was returned.
    '''
    if len(body) <= limit:
        return body, True

    return replacement.format(
        limit=limit,
        actual=len(body),
    ), False


def _published_release(
    release: github3.repos.release.Release,
) -> changelog.publish.PublishedRelease:
    return changelog.publish.PublishedRelease(
        id=release.id,
        tag=release.tag_name,
        link=release.html_url,
    )


class GitHubReleaseStore(changelog.publish.ReleaseStore):
    def __init__(
        self,
        repository: github3.repos.Repository,
    ):
        self.repository = repository

    def _body(self, release_input: changelog.publish.ReleaseInput) -> str:
        body, fits = body_or_replacement(release_input.description or '')
        if not fits:
            logger.warning(
                f'release notes for {release_input.tag} exceed {RELEASE_BODY_LIMIT} characters - '
                'replacing them by a hint'
            )
        return body

    def find_release_by_tag(self, tag: str) -> changelog.publish.PublishedRelease | None:
        try:
            release = self.repository.release_from_tag(tag)
        except github3.exceptions.NotFoundError:
            return None
        except github3.exceptions.GitHubError as ghe:
            raise changelog.publish.ReleaseStoreError(
                f'failed to query release on repo {self.repository.full_name} for tag {tag}: {ghe}'
            ) from ghe

        return _published_release(release)

    def create_release(
        self,
        release_input: changelog.publish.ReleaseInput,
    ) -> changelog.publish.PublishedRelease:
        try:
            release = self.repository.create_release(
                tag_name=release_input.tag,
                name=release_input.title,
                body=self._body(release_input),
            )
        except github3.exceptions.GitHubError as ghe:
            raise changelog.publish.ReleaseStoreError(
                f'failed to create release {release_input.tag}: {ghe}'
            ) from ghe

        logger.info(f'created release {release_input.tag} on {self.repository.full_name}')
        return _published_release(release)

    def update_release(
        self,
        release_id: int,
        release_input: changelog.publish.ReleaseInput,
    ) -> changelog.publish.PublishedRelease:
        try:
            release = self.repository.release(release_id)
            if not release.edit(
                tag_name=release_input.tag,
                name=release_input.title,
                body=self._body(release_input),
            ):
                raise changelog.publish.ReleaseStoreError(
                    f'failed to update release {release_id} ({release_input.tag})'
                )
        except github3.exceptions.GitHubError as ghe:
            raise changelog.publish.ReleaseStoreError(
                f'failed to update release {release_id} ({release_input.tag}): {ghe}'
            ) from ghe

        logger.info(f'updated release {release_input.tag} on {self.repository.full_name}')
        return _published_release(release)
