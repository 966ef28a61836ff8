# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import datetime
import logging

import changelog.dependencies
import changelog.model as cm

logger = logging.getLogger(__name__)

# used if no explicit version is passed; the release document is then rendered as part of a
# helm chart
CHART_NAME = '{{ .Chart.Name }}'
CHART_VERSION = '{{ .Chart.Version }}'
CHART_RELEASE_NAME = '{{ .Chart.Name }}-{{ .Chart.Version | replace "+" "_" }}'


def release_name(repository: str, version: str) -> str:
    # '+' (semver build-metadata separator) is not allowed in k8s object names
    return f'{repository}-{version.replace("+", "_")}'


def _unique_by_id(summaries: list[cm.IssueSummary]) -> list[cm.IssueSummary]:
    seen = set()
    unique = []
    for summary in summaries:
        if summary.id in seen:
            logger.debug(f'dropping duplicate entry for issue {summary.id}')
            continue
        seen.add(summary.id)
        unique.append(summary)
    return unique


def build_release(
    assembly: cm.Assembly,
    version: str | None,
    repo_info: cm.GitRepoInfo,
    now: datetime.datetime | None=None,
    release_notes_url: str | None=None,
) -> cm.Release:
    '''
    builds a `jenkins.io/v1` `Release` from the given (fully assembled) commits, issues,
    pull requests and dependency updates.

    Apart from `metadata.creationTimestamp` (which may be pinned by passing `now`), the result
    only depends on the passed values. Commits retain their order.

    If no version is passed, name and version are set to helm chart expressions, so the
    resulting document can be used as a template of the chart it is written into.
    '''
    if now is None:
        now = datetime.datetime.now(tz=datetime.timezone.utc)

    if version:
        name = release_name(repository=repo_info.name, version=version)
        spec_name = repo_info.name
    else:
        logger.info('no version given - using helm chart placeholders')
        name = CHART_RELEASE_NAME
        spec_name = CHART_NAME
        version = CHART_VERSION

    spec = cm.ReleaseSpec(
        name=spec_name,
        version=version,
        gitOwner=repo_info.owner,
        gitRepository=repo_info.name,
        gitHttpUrl=repo_info.https_url,
        gitCloneUrl=repo_info.clone_url,
        commits=list(assembly.commits),
        issues=_unique_by_id(assembly.issues),
        pullRequests=_unique_by_id(assembly.pull_requests),
        dependencyUpdates=changelog.dependencies.collapse_dependency_updates(
            assembly.dependency_updates,
        ),
        releaseNotesURL=release_notes_url,
    )

    return cm.Release(
        metadata=cm.ReleaseMetadata(
            name=name,
            creationTimestamp=cm.format_timestamp(now),
        ),
        spec=spec,
    )
