# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import enum
import functools
import logging

import cachecontrol
import requests

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


class AdapterFlag(enum.Flag):
    RETRY = enum.auto()
    CACHE = enum.auto()


class LoggingRetry(Retry):
    '''
    urllib3-retry-cfg which logs a warning for each retry. Defaults to three retries with
    exponential backoff for connection errors and for status codes hinting at temporary
    server-side issues (or quota exhaustion).
    '''
    def __init__(
        self,
        **kwargs,
    ):
        defaults = dict(
            total=3,
            connect=3,
            read=3,
            status=3,
            redirect=False,
            status_forcelist=(429, 500, 502, 503, 504),
            raise_on_status=False,
            respect_retry_after_header=True,
            backoff_factor=1.0,
        )

        super().__init__(**(defaults | kwargs))

    def increment(
        self,
        method=None,
        url=None,
        response=None,
        error=None,
        _pool=None,
        _stacktrace=None,
    ):
        # either raises (no more retries), or returns a new instance w/ updated history
        retry = super().increment(method, url, response, error, _pool, _stacktrace)
        num_retries = len(retry.history)
        status = response.status if response is not None else None
        logger.warning(f'{method=} {url=} returned {status=} {error=} {num_retries=} - retrying')
        return retry


_default_retry_cfg = LoggingRetry()


def mount_default_adapter(
    session: requests.Session,
    connection_pool_cache_size=32, # requests-library default
    max_pool_size=32, # requests-library default
    flags=AdapterFlag.RETRY,
    retry_cfg: Retry=_default_retry_cfg,
) -> requests.Session:
    '''
    mounts a http-adapter to the given session (for both http and https), optionally adding
    logging retries (`AdapterFlag.RETRY`) and ETag-based caching (`AdapterFlag.CACHE`).
    '''
    if AdapterFlag.CACHE in flags:
        adapter_constructor = functools.partial(
            cachecontrol.CacheControlAdapter,
            cache_etags=True,
        )
    else:
        adapter_constructor = HTTPAdapter

    if AdapterFlag.RETRY in flags:
        adapter_constructor = functools.partial(
            adapter_constructor,
            max_retries=retry_cfg,
        )

    default_http_adapter = adapter_constructor(
        pool_connections=connection_pool_cache_size,
        pool_maxsize=max_pool_size,
    )
    session.mount('http://', default_http_adapter)
    session.mount('https://', default_http_adapter)

    return session
