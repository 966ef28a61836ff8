# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import functools
import logging
import time

import github3.exceptions

logger = logging.getLogger(__name__)

QUOTA_RETRY_INTERVAL_SECONDS = 60


def _is_quota_error(fbe: github3.exceptions.ForbiddenError) -> bool:
    message = fbe.message
    if isinstance(message, bytes):
        message = message.decode('utf-8')
    return 'exceeded' in (message or '')


def retry_and_throttle(function: callable=None, retries=5, sleep=time.sleep):
    '''
    decorator for functions issueing github-api-requests that will sporadically run into
    quota-issues. Between retries, there is a sleep of QUOTA_RETRY_INTERVAL_SECONDS. Any other
    errors than quota-related github3.exceptions.ForbiddenError are re-raised immediately. After
    configured amount of retries, last exception is re-raised.

    may be used w/ or w/o arguments (`@retry_and_throttle` or `@retry_and_throttle(retries=1)`)
    '''
    if function is None:
        return functools.partial(retry_and_throttle, retries=retries, sleep=sleep)

    @functools.wraps(function)
    def call_with_retry(*args, **kwargs):
        remaining = retries
        while True:
            try:
                return function(*args, **kwargs)
            except github3.exceptions.ForbiddenError as fbe:
                if remaining <= 0 or not _is_quota_error(fbe):
                    raise

                remaining -= 1
                logger.warning(f'error from github: {fbe.message=} retries={remaining}')
                sleep(QUOTA_RETRY_INTERVAL_SECONDS)

    return call_with_retry
