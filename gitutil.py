# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging
import os

import git
import git.exc
import semver

logger = logging.getLogger(__name__)


def parse_tag_version(tag: str) -> semver.VersionInfo | None:
    '''
    parses the given tag name into a semver.VersionInfo object. A leading `v` is stripped, and
    two-digit versions are extended by patch-level `.0`. Returns None if the tag is not a
    (relaxed) semver version.
    '''
    if not tag:
        return None

    version = tag.removeprefix('v')

    try:
        return semver.VersionInfo.parse(version)
    except ValueError:
        pass # try extending `.0` as patch-level

    numeric, sep, suffix = version.partition('-' if '-' in version else '+')
    if numeric.count('.') != 1:
        return None

    try:
        return semver.VersionInfo.parse(f'{numeric}.0{sep}{suffix}')
    except ValueError:
        return None


class GitHelper:
    '''
    read-mostly access to a local git repository, as required for determining revision-ranges
    of changelogs
    '''
    def __init__(
        self,
        repo,
    ):
        if repo is None:
            raise ValueError(repo)
        if isinstance(repo, str):
            repo = git.Repo(repo, search_parent_directories=True)
        if not isinstance(repo, git.Repo):
            raise ValueError(repo)

        self.repo = repo

    @property
    def working_tree_dir(self) -> str:
        return self.repo.working_tree_dir

    def tags(self) -> list[str]:
        return [tag.name for tag in self.repo.tags]

    def _version_tags(self) -> list[git.TagReference]:
        '''
        returns all tags that are semver-versions, ordered by version (ascending)
        '''
        versioned = []
        for tag in self.repo.tags:
            if not (version := parse_tag_version(tag.name)):
                logger.debug(f'ignoring non-version tag {tag.name}')
                continue
            versioned.append((version, tag))

        return [tag for _, tag in sorted(versioned, key=lambda vt: vt[0])]

    def _tag_commit(self, index: int) -> tuple[str | None, str | None]:
        tags = self._version_tags()
        try:
            tag = tags[index]
        except IndexError:
            return None, None

        return tag.commit.hexsha, tag.name

    def latest_tag_commit(self) -> tuple[str | None, str | None]:
        '''
        returns the commit-sha and name of the tag with the greatest version, or (None, None)
        if there are no version tags
        '''
        return self._tag_commit(-1)

    def previous_tag_commit(self) -> tuple[str | None, str | None]:
        '''
        returns the commit-sha and name of the tag with the second-greatest version, or
        (None, None) if there are less than two version tags
        '''
        return self._tag_commit(-2)

    def first_commit(self, rev: str='HEAD') -> str | None:
        try:
            root_commits = self.repo.git.rev_list('--max-parents=0', rev).split()
        except git.exc.GitCommandError as gce:
            logger.warning(f'failed to determine first commit: {gce}')
            return None

        if not root_commits:
            return None

        return root_commits[-1]

    def revision_before_date(self, date: str, rev: str='HEAD') -> str | None:
        '''
        returns the sha of the latest commit reachable from `rev` that was committed before the
        given date (any date format understood by git, e.g. `2024-01-31` or `1 month ago`)
        '''
        sha = self.repo.git.rev_list('-1', f'--before={date}', rev).strip()
        return sha or None

    def add(self, path: str):
        path = os.path.relpath(os.path.abspath(path), self.working_tree_dir)
        self.repo.git.add(path)
