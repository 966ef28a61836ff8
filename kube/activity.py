# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
updates `jenkins.io/v1` `PipelineActivity` custom objects with the results of a changelog run
'''

import logging
import re

from kubernetes.client import CustomObjectsApi
from kubernetes.client.rest import ApiException

from ci.util import not_empty
import changelog.model as cm

logger = logging.getLogger(__name__)

GROUP = 'jenkins.io'
VERSION = 'v1'
PLURAL = 'pipelineactivities'
KIND = 'PipelineActivity'


class ActivityUpdateError(RuntimeError):
    pass


def to_valid_name(name: str) -> str:
    '''
    converts the given name into a valid kubernetes object name (lower-case alphanumeric
    characters and dashes, starting and ending with an alphanumeric character)
    '''
    name = re.sub(r'[^a-z0-9]+', '-', name.lower())
    return name.strip('-')


def _update_value(spec: dict, key: str, new_value: str | None) -> bool:
    if not new_value or spec.get(key) == new_value:
        return False
    spec[key] = new_value
    return True


def apply_release(
    spec: dict,
    release: cm.Release,
    version: str | None,
) -> bool:
    '''
    updates the given activity-spec (in place) with last commit, release notes url and version of
    the given release. Values are only updated if the new value is not empty and differs.
    Returns whether any value was changed.
    '''
    updated = False

    if (commits := release.spec.commits):
        last_commit = commits[-1]
        updated |= _update_value(spec, 'lastCommitSHA', last_commit.sha)
        updated |= _update_value(spec, 'lastCommitMessage', last_commit.message)
        updated |= _update_value(spec, 'lastCommitURL', last_commit.url)

    updated |= _update_value(spec, 'releaseNotesURL', release.spec.releaseNotesURL)
    updated |= _update_value(spec, 'version', version)

    return updated


class PipelineActivityHelper:
    '''Helper class for `PipelineActivity` custom objects'''

    def __init__(self, custom_api: CustomObjectsApi):
        self.custom_api = custom_api

    def get_activity(self, namespace: str, name: str) -> dict | None:
        '''Return the `PipelineActivity` with the given name in the given namespace, or `None` if
        no such activity exists.
        '''
        not_empty(namespace)
        not_empty(name)

        try:
            return self.custom_api.get_namespaced_custom_object(
                group=GROUP,
                version=VERSION,
                namespace=namespace,
                plural=PLURAL,
                name=name,
            )
        except ApiException as ae:
            if ae.status == 404:
                return None
            raise ActivityUpdateError(f'failed to get PipelineActivity {name}: {ae}') from ae

    def create_activity(self, namespace: str, activity: dict) -> dict:
        try:
            return self.custom_api.create_namespaced_custom_object(
                group=GROUP,
                version=VERSION,
                namespace=namespace,
                plural=PLURAL,
                body=activity,
            )
        except ApiException as ae:
            name = activity['metadata']['name']
            raise ActivityUpdateError(f'failed to create PipelineActivity {name}: {ae}') from ae

    def get_or_create_activity(
        self,
        namespace: str,
        name: str,
        pipeline: str,
        build: str,
        owner: str,
        repository: str,
        branch: str,
    ) -> dict:
        if (activity := self.get_activity(namespace=namespace, name=name)):
            return activity

        logger.info(f'creating PipelineActivity {name}')
        return self.create_activity(
            namespace=namespace,
            activity={
                'apiVersion': f'{GROUP}/{VERSION}',
                'kind': KIND,
                'metadata': {
                    'name': name,
                },
                'spec': {
                    'pipeline': pipeline,
                    'build': build,
                    'gitOwner': owner,
                    'gitRepository': repository,
                    'gitBranch': branch,
                },
            },
        )

    def replace_activity(self, namespace: str, activity: dict) -> dict:
        name = activity['metadata']['name']
        try:
            return self.custom_api.replace_namespaced_custom_object(
                group=GROUP,
                version=VERSION,
                namespace=namespace,
                plural=PLURAL,
                name=name,
                body=activity,
            )
        except ApiException as ae:
            raise ActivityUpdateError(f'failed to update PipelineActivity {name}: {ae}') from ae


def update_pipeline_activity(
    custom_api: CustomObjectsApi,
    namespace: str,
    owner: str,
    repository: str,
    branch: str,
    build: str | None,
    release: cm.Release,
    version: str | None,
) -> bool:
    '''
    records last commit, release notes url and version of the given release in the
    `PipelineActivity` of the given build (which is created if absent). Returns whether the
    activity was changed.
    '''
    if not build:
        logger.warning(
            'No $BUILD_NUMBER so cannot update PipelineActivities with the details from the '
            'changelog'
        )
        return False

    pipeline = f'{owner}/{repository}/{branch}'
    name = to_valid_name(f'{pipeline}-{build}')

    helper = PipelineActivityHelper(custom_api)
    activity = helper.get_or_create_activity(
        namespace=namespace,
        name=name,
        pipeline=pipeline,
        build=build,
        owner=owner,
        repository=repository,
        branch=branch,
    )

    spec = activity.setdefault('spec', {})
    if not apply_release(spec=spec, release=release, version=version):
        logger.debug(f'PipelineActivity {name} is up-to-date')
        return False

    activity = helper.replace_activity(namespace=namespace, activity=activity)
    status = activity.get('spec', {}).get('status')
    logger.info(f'Updated PipelineActivity {name} which has status {status}')
    return True
