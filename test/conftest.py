# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import git
import pytest


author = git.Actor('Jane Doe', 'jane@example.org')


@pytest.fixture
def git_repo(tmpdir):
    repo = git.Repo.init(tmpdir)

    repo.index.commit(
        'first commit',
        author=author,
        committer=author,
        author_date='2024-01-01T12:00:00',
        commit_date='2024-01-01T12:00:00',
    )

    return repo


@pytest.fixture
def commit():
    '''
    returns a function creating (empty) commits in a given repository
    '''
    def _commit(repo: git.Repo, message: str, date: str='2024-02-01T12:00:00', tag=None):
        created = repo.index.commit(
            message,
            author=author,
            committer=author,
            author_date=date,
            commit_date=date,
        )
        if tag:
            repo.create_tag(tag, ref=created)
        return created

    return _commit
