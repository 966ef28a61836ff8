# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import itertools
import logging
import re

import changelog.model as cm

logger = logging.getLogger(__name__)


r'''
matches dependency-update lines as written by update-bots, e.g.:

chore(deps): bump github.com/jenkins-x/jx from 2.0.1 to 2.0.2
chore(deps): bump jenkins-x/jx:jx-cli from v1.0 to v1.1

[^\S\n] is "all whitespaces except \n"
'''
_dependency_update_pattern = re.compile(
    pattern=(
        r'^[^\S\n]*\w+\(deps\)!?:[^\S\n]*bump[^\S\n]+(?P<ref>\S+)'
        r'[^\S\n]+from[^\S\n]+(?P<from_version>\S+)[^\S\n]+to[^\S\n]+(?P<to_version>\S+)'
    ),
    flags=re.IGNORECASE | re.MULTILINE,
)


def _sort_key(update: cm.DependencyUpdate) -> tuple[str, ...]:
    return (
        update.owner or '',
        update.repo or '',
        update.component or '',
        update.fromVersion or '',
        update.toVersion or '',
    )


def collapse_dependency_updates(
    dependency_updates: list[cm.DependencyUpdate],
) -> list[cm.DependencyUpdate]:
    '''
    removes duplicates and collapses multiple updates of the same owner/repo:component into a
    single update spanning from the earliest `from`-version to the latest `to`-version (versions
    are compared as strings). Updates referring to different owner, repo or component are never
    merged.

    The passed list is not modified.
    '''
    collapsed = []
    ordered = sorted(dependency_updates, key=_sort_key)

    for _, group in itertools.groupby(ordered, key=lambda u: u.identity):
        group = list(group)
        first = group[0]
        # sorted by from-version, hence the record w/ the latest to-version is not necessarily
        # the last one (ties are resolved in favour of later records)
        last = max(reversed(group), key=lambda u: u.toVersion or '')
        if len(group) == 1:
            collapsed.append(first)
            continue

        collapsed.append(cm.DependencyUpdate(
            owner=first.owner,
            repo=first.repo,
            component=first.component,
            host=first.host,
            url=first.url,
            fromVersion=first.fromVersion,
            fromReleaseName=first.fromReleaseName,
            fromReleaseHTMLURL=first.fromReleaseHTMLURL,
            toVersion=last.toVersion,
            toReleaseName=last.toReleaseName,
            toReleaseHTMLURL=last.toReleaseHTMLURL,
        ))

    return collapsed


def parse_dependency_updates(message: str) -> list[cm.DependencyUpdate]:
    '''
    returns the dependency updates announced in the given commit message. References which do
    not name at least an owner and a repository (e.g. bumps of plain package names) are ignored.
    '''
    if not message:
        return []

    updates = []
    for match in _dependency_update_pattern.finditer(message):
        ref = match.group('ref')
        ref, _, component = ref.partition(':')
        parts = [p for p in ref.split('/') if p]

        host = None
        if len(parts) > 2 and '.' in parts[0]:
            host, *parts = parts

        if len(parts) < 2:
            logger.debug(f'ignoring dependency update w/o owner: {match.group(0)}')
            continue

        owner = '/'.join(parts[:-1])
        repo = parts[-1]
        from_version = match.group('from_version')
        to_version = match.group('to_version')

        if host:
            url = f'https://{host}/{owner}/{repo}'
            from_release_url = f'{url}/releases/tag/{from_version}'
            to_release_url = f'{url}/releases/tag/{to_version}'
        else:
            url = from_release_url = to_release_url = None

        updates.append(cm.DependencyUpdate(
            owner=owner,
            repo=repo,
            component=component or None,
            host=host,
            url=url,
            fromVersion=from_version,
            fromReleaseName=from_version,
            fromReleaseHTMLURL=from_release_url,
            toVersion=to_version,
            toReleaseName=to_version,
            toReleaseHTMLURL=to_release_url,
        ))

    return updates
