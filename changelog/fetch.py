# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging

import git
import git.exc

import changelog.model as cm

logger = logging.getLogger(__name__)

RELEASE_COMMIT_PREFIX = 'release '


class CommitSourceError(RuntimeError):
    pass


def raw_commit(commit: git.Commit) -> cm.RawCommit:
    return cm.RawCommit(
        sha=commit.hexsha,
        message=commit.message,
        author=cm.GitIdentity(
            name=commit.author.name,
            email=commit.author.email,
        ),
        committer=cm.GitIdentity(
            name=commit.committer.name,
            email=commit.committer.email,
        ),
        timestamp=commit.committed_datetime,
        parent_count=len(commit.parents),
    )


def fetch_commits(
    repo: git.Repo,
    from_rev: str,
    to_rev: str | None=None,
) -> list[cm.RawCommit]:
    '''
    returns the commits reachable from `to_rev`, but not from `from_rev` (`from_rev..to_rev`),
    in git-log order (latest first). `to_rev` defaults to `HEAD`.

    raises `CommitSourceError` if any of the revisions cannot be resolved.
    '''
    to_rev = to_rev or 'HEAD'

    for rev in (from_rev, to_rev):
        try:
            repo.rev_parse(rev)
        except (git.exc.BadName, git.exc.BadObject, ValueError) as e:
            raise CommitSourceError(f'failed to resolve revision {rev}: {e}') from e

    try:
        return [
            raw_commit(commit)
            for commit in repo.iter_commits(f'{from_rev}..{to_rev}')
        ]
    except git.exc.GitCommandError as gce:
        raise CommitSourceError(
            f'failed to list commits between {from_rev} and {to_rev}: {gce}'
        ) from gce


def strip_release_commit(commits: list[cm.RawCommit]) -> list[cm.RawCommit]:
    '''
    removes the first commit if it is a release commit (i.e. its message starts with `release `)
    '''
    if commits and commits[0].message.startswith(RELEASE_COMMIT_PREFIX):
        logger.info(f'ignoring release commit {commits[0].sha}')
        return commits[1:]
    return commits


def log_commits(commits: list[cm.RawCommit]):
    logger.debug('Found commits:')
    for commit in commits:
        logger.debug(f'  commit {commit.sha}')
        logger.debug(f'  Author: {commit.author}')
        if commit.timestamp:
            logger.debug(f'  Date: {commit.timestamp.strftime("%a %b %d %H:%M:%S %Y")}')
        logger.debug(f'      {commit.message}\n\n')
