# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import copy
import functools
import logging
import os
import pathlib

import deepmerge
import yaml

logger = logging.getLogger(__name__)


class Failure(RuntimeError, ValueError):
    pass


def fail(msg=None):
    if msg:
        logger.error(msg)
    raise Failure(msg or 1)


def existing_file(path):
    if isinstance(path, pathlib.Path):
        is_file = path.is_file()
    else:
        is_file = os.path.isfile(path)
    if not is_file:
        fail('not an existing file: ' + str(path))
    return path


def not_empty(value):
    if not value or len(value) == 0:
        fail('passed value must not be empty')
    return value


def not_none(value):
    if value is None:
        fail('passed value must not be None')
    return value


def parse_yaml_file(path, max_elements_count=100000):
    with open(path) as f:
        parsed = yaml.load(f, Loader=yaml.SafeLoader)
        # mitigate yaml bomb
        _count_elements(parsed, max_elements_count=max_elements_count)
        return parsed


def _count_elements(value, count=0, max_elements_count=100000):
    '''
    recursively counts elements contained in the given value. Before each recursion step,
    the amount of encountered elements is checked against a maximum allowed elements count.
    If said threshold is exceeded, recursion is aborted and a `ValueError` is raised.

    This function is intended to be used as a mitigation against "Billion laughs attack"
    (https://en.wikipedia.org/wiki/Billion_laughs_attack).
    '''
    if count > max_elements_count:
        raise ValueError('dict too large')

    if isinstance(value, list):
        leng = 0
        for e in value:
            leng += _count_elements(e, count=count+leng, max_elements_count=max_elements_count)
        return leng

    if not isinstance(value, dict):
        return 1

    leng = 0
    for v in value.values():
        leng += _count_elements(v, count=count+leng, max_elements_count=max_elements_count)

    return leng


def urljoin(*parts):
    if len(parts) == 1:
        return parts[0]
    first = parts[0]
    last = parts[-1]
    middle = parts[1:-1]

    first = first.rstrip('/')
    middle = list(map(lambda s: s.strip('/'), middle))
    last = last.lstrip('/')

    return '/'.join([first] + middle + [last])



def merge_dicts(base: dict, *other: dict) -> dict:
    '''
    merges copies of the given dict instances and returns the merge result. The arguments remain
    unmodified. In case of merge conflicts, values from `other` overwrite values from `base`
    (this also applies to lists).
    '''
    not_none(base)
    not_empty(other)

    merger = deepmerge.Merger(
        [(dict, ['merge'])],
        ['override'],
        ['override'],
    )

    return functools.reduce(
        lambda b, o: merger.merge(b, copy.deepcopy(o)),
        [base, *other],
        {},
    )
