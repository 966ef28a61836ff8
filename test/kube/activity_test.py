# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import unittest.mock

import pytest
from kubernetes.client.rest import ApiException

import changelog.model as cm
import kube.activity as examinee


def release(release_notes_url=None) -> cm.Release:
    return cm.Release(
        metadata=cm.ReleaseMetadata(name='jx-1.2.3'),
        spec=cm.ReleaseSpec(
            name='jx',
            version='1.2.3',
            commits=[
                cm.CommitSummary(sha='b' * 40, message='fix: b', url='https://x/commit/b'),
                cm.CommitSummary(sha='a' * 40, message='feat: a', url='https://x/commit/a'),
            ],
            releaseNotesURL=release_notes_url,
        ),
    )


@pytest.fixture
def custom_api():
    api = unittest.mock.MagicMock()
    api.replace_namespaced_custom_object.side_effect = lambda **kwargs: kwargs['body']
    api.create_namespaced_custom_object.side_effect = lambda **kwargs: kwargs['body']
    return api


@pytest.mark.parametrize(
    'name,expected',
    [
        ('jenkins-x/jx/master-7', 'jenkins-x-jx-master-7'),
        ('Org/Repo/feature/FOO_bar-12', 'org-repo-feature-foo-bar-12'),
        ('-leading/and/trailing-', 'leading-and-trailing'),
    ],
)
def test_to_valid_name(name, expected):
    assert examinee.to_valid_name(name) == expected


def test_apply_release():
    spec = {'lastCommitSHA': 'a' * 40, 'version': '1.2.3'}

    assert examinee.apply_release(spec=spec, release=release(), version='1.2.3')
    assert spec == {
        'lastCommitSHA': 'a' * 40,
        'lastCommitMessage': 'feat: a',
        'lastCommitURL': 'https://x/commit/a',
        'version': '1.2.3',
    }

    # nothing changed
    assert not examinee.apply_release(spec=spec, release=release(), version='1.2.3')
    # empty values do not overwrite existing ones
    assert not examinee.apply_release(spec=spec, release=release(), version=None)

    assert examinee.apply_release(
        spec=spec,
        release=release(release_notes_url='https://x/releases/tag/1.2.3'),
        version='1.2.3',
    )
    assert spec['releaseNotesURL'] == 'https://x/releases/tag/1.2.3'


def test_update_existing_activity(custom_api):
    custom_api.get_namespaced_custom_object.return_value = {
        'metadata': {'name': 'jenkins-x-jx-master-7'},
        'spec': {'build': '7', 'status': 'Running'},
    }

    assert examinee.update_pipeline_activity(
        custom_api=custom_api,
        namespace='jx',
        owner='jenkins-x',
        repository='jx',
        branch='master',
        build='7',
        release=release(),
        version='1.2.3',
    )

    custom_api.get_namespaced_custom_object.assert_called_once_with(
        group='jenkins.io',
        version='v1',
        namespace='jx',
        plural='pipelineactivities',
        name='jenkins-x-jx-master-7',
    )
    custom_api.create_namespaced_custom_object.assert_not_called()

    body = custom_api.replace_namespaced_custom_object.call_args.kwargs['body']
    assert body['spec']['version'] == '1.2.3'
    assert body['spec']['build'] == '7'


def test_activity_is_created_if_absent(custom_api):
    custom_api.get_namespaced_custom_object.side_effect = ApiException(status=404)

    assert examinee.update_pipeline_activity(
        custom_api=custom_api,
        namespace='jx',
        owner='jenkins-x',
        repository='jx',
        branch='master',
        build='7',
        release=release(),
        version='1.2.3',
    )

    created = custom_api.create_namespaced_custom_object.call_args.kwargs['body']
    assert created['kind'] == 'PipelineActivity'
    assert created['metadata']['name'] == 'jenkins-x-jx-master-7'
    assert created['spec']['pipeline'] == 'jenkins-x/jx/master'
    assert created['spec']['gitRepository'] == 'jx'


def test_up_to_date_activity_is_not_replaced(custom_api):
    custom_api.get_namespaced_custom_object.return_value = {
        'metadata': {'name': 'jenkins-x-jx-master-7'},
        'spec': {
            'lastCommitSHA': 'a' * 40,
            'lastCommitMessage': 'feat: a',
            'lastCommitURL': 'https://x/commit/a',
            'version': '1.2.3',
        },
    }

    assert not examinee.update_pipeline_activity(
        custom_api=custom_api,
        namespace='jx',
        owner='jenkins-x',
        repository='jx',
        branch='master',
        build='7',
        release=release(),
        version='1.2.3',
    )
    custom_api.replace_namespaced_custom_object.assert_not_called()


def test_no_build_number(custom_api):
    assert not examinee.update_pipeline_activity(
        custom_api=custom_api,
        namespace='jx',
        owner='jenkins-x',
        repository='jx',
        branch='master',
        build=None,
        release=release(),
        version='1.2.3',
    )
    custom_api.get_namespaced_custom_object.assert_not_called()


def test_api_errors_are_fatal(custom_api):
    custom_api.get_namespaced_custom_object.side_effect = ApiException(status=403)

    with pytest.raises(examinee.ActivityUpdateError):
        examinee.update_pipeline_activity(
            custom_api=custom_api,
            namespace='jx',
            owner='jenkins-x',
            repository='jx',
            branch='master',
            build='7',
            release=release(),
            version='1.2.3',
        )
