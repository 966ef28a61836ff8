# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections.abc
import dataclasses
import logging

import ci.util

logger = logging.getLogger(__name__)


class ReleaseStoreError(RuntimeError):
    '''
    raised by `ReleaseStore` implementations upon failures other than "release not found"
    '''
    pass


@dataclasses.dataclass(frozen=True)
class ReleaseInput:
    title: str
    tag: str
    description: str


@dataclasses.dataclass(frozen=True)
class PublishedRelease:
    id: int | str
    tag: str
    link: str | None = None


class ReleaseStore:
    '''
    base-class for adapters to an SCM's releases (e.g. GitHub-releases of one repository)
    '''
    def find_release_by_tag(self, tag: str) -> PublishedRelease | None:
        '''
        returns None if there is no release for the given tag; raises `ReleaseStoreError` upon
        any other failure
        '''
        raise NotImplementedError

    def create_release(self, release_input: ReleaseInput) -> PublishedRelease:
        raise NotImplementedError

    def update_release(
        self,
        release_id: int | str,
        release_input: ReleaseInput,
    ) -> PublishedRelease:
        raise NotImplementedError


def resolve_tag_name(version: str, tags: collections.abc.Iterable[str]) -> str:
    '''
    returns the name of the tag to use for a release of the given version. The version is used
    verbatim, unless there is no such tag, but a `v`-prefixed one.
    '''
    tags = set(tags)
    v_version = f'v{version}'

    if v_version in tags and version not in tags:
        return v_version
    return version


def default_release_notes_url(git_http_url: str, tag_name: str) -> str:
    return ci.util.urljoin(git_http_url, 'releases/tag', tag_name)


def publish_release(
    store: ReleaseStore,
    version: str,
    tag_name: str,
    markdown: str,
    git_http_url: str,
) -> str | None:
    '''
    creates or updates the release for the given tag, using the given markdown as description.

    Returns the URL of the release notes, or None if the release could not be created or
    updated (which is logged as a warning only). Raises `ReleaseStoreError` if looking up
    existing releases failed.
    '''
    release_input = ReleaseInput(
        title=version,
        tag=tag_name,
        description=markdown,
    )

    release = store.find_release_by_tag(tag_name)

    if not release:
        try:
            release = store.create_release(release_input)
        except ReleaseStoreError as rse:
            logger.warning(f'Failed to create the release for {tag_name}: {rse}')
            return None
    else:
        try:
            release = store.update_release(release.id, release_input)
        except ReleaseStoreError as rse:
            logger.warning(f'Failed to update the release for {tag_name} ({release.id}): {rse}')
            return None

    if not (url := release.link if release else None):
        url = default_release_notes_url(git_http_url=git_http_url, tag_name=tag_name)

    logger.info(f'Updated the release information at {url}')
    logger.debug(f'added description: {markdown}')

    return url
