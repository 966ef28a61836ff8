# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import unittest.mock

import pytest


def _github_error(exception_type, status_code: int, message: str=''):
    response = unittest.mock.MagicMock()
    response.status_code = status_code
    response.json.return_value = {'message': message}
    return exception_type(response)


@pytest.fixture
def github_error():
    '''
    returns a function creating github3-exceptions (which require an http-response)
    '''
    return _github_error
