# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import enum
import functools
import logging
import urllib.parse

import github3
import github3.github
import github3.session

import ci.util
import ctx
import http_requests

logger = logging.getLogger(__name__)


class SessionAdapter(enum.Enum):
    NONE = None
    RETRY = 'retry'
    CACHE = 'cache'


def github_api_ctor(
    github_url: str,
    verify_ssl: bool=True,
    session_adapter: SessionAdapter=SessionAdapter.RETRY,
):
    '''returns the appropriate github3.GitHub constructor for the given github URL

    In case github_url does not refer to github.com, the c'tor for GithubEnterprise is
    returned with the url argument preset, thus disburdening users to differentiate
    between github.com and non-github.com cases.
    '''
    parsed = urllib.parse.urlparse(github_url)
    if parsed.scheme:
        hostname = parsed.hostname
    else:
        raise ValueError('failed to parse url: ' + str(github_url))

    session = github3.session.GitHubSession()
    session_adapter = SessionAdapter(session_adapter)

    if session_adapter is SessionAdapter.NONE or not session_adapter:
        pass
    elif session_adapter is SessionAdapter.RETRY:
        session = http_requests.mount_default_adapter(
            session=session,
            flags=http_requests.AdapterFlag.RETRY,
            max_pool_size=16, # increase with care, might cause github api "secondary-rate-limit"
        )
    elif session_adapter is SessionAdapter.CACHE:
        session = http_requests.mount_default_adapter(
            session=session,
            flags=http_requests.AdapterFlag.CACHE | http_requests.AdapterFlag.RETRY,
            max_pool_size=16,
        )
    else:
        raise NotImplementedError

    if hostname.lower() in ('github.com', 'api.github.com'):
        return functools.partial(
            github3.github.GitHub,
            session=session,
        )
    else:
        return functools.partial(
            github3.github.GitHubEnterprise,
            url=github_url,
            verify=verify_ssl,
            session=session,
        )


def github_url(
    github_cfg: ctx.GithubCfg | None,
    host: str,
) -> str:
    if github_cfg and github_cfg.api_url:
        return github_cfg.api_url
    return f'https://{host}'


def github_api(
    host: str='github.com',
    github_cfg: ctx.GithubCfg | None=None,
    session_adapter: SessionAdapter=SessionAdapter.RETRY,
) -> github3.GitHub:
    '''
    returns an (authenticated, if a token is configured) github3-api-object for the GitHub
    instance hosted at `host`. If no github_cfg is passed, the current configuration (see
    `ctx.cfg`) is used.
    '''
    if not github_cfg and ctx.cfg:
        github_cfg = ctx.cfg.github

    url = github_url(github_cfg=github_cfg, host=host)
    verify_ssl = True
    token = None
    if github_cfg:
        token = github_cfg.token
        if github_cfg.tls_verify is not None:
            verify_ssl = github_cfg.tls_verify

    github_ctor = github_api_ctor(
        github_url=url,
        verify_ssl=verify_ssl,
        session_adapter=session_adapter,
    )

    if token:
        api = github_ctor(token=token)
    else:
        logger.warning(f'no github token configured - using anonymous access to {url}')
        api = github_ctor()

    if not api:
        ci.util.fail(f'Could not connect to GitHub-instance {url}')

    return api
