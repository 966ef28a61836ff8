# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import github3.github
import pytest

import ccc.github as examinee
import ctx


def test_github_url():
    assert examinee.github_url(github_cfg=None, host='github.com') == 'https://github.com'
    assert examinee.github_url(
        github_cfg=ctx.GithubCfg(api_url='https://github.example/api/v3'),
        host='github.example',
    ) == 'https://github.example/api/v3'


def test_github_api_ctor():
    ctor = examinee.github_api_ctor(github_url='https://github.com')
    assert ctor.func is github3.github.GitHub

    ctor = examinee.github_api_ctor(
        github_url='https://github.example',
        verify_ssl=False,
        session_adapter=examinee.SessionAdapter.CACHE,
    )
    assert ctor.func is github3.github.GitHubEnterprise
    assert ctor.keywords['url'] == 'https://github.example'
    assert ctor.keywords['verify'] is False

    with pytest.raises(ValueError):
        examinee.github_api_ctor(github_url='github.com')


def test_github_api():
    api = examinee.github_api(
        host='github.com',
        github_cfg=ctx.GithubCfg(token='token'),
        session_adapter=examinee.SessionAdapter.NONE,
    )

    assert isinstance(api, github3.github.GitHub)
    assert api.session.auth.token == 'token'
