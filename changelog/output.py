# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging
import os

import yaml

import changelog.model as cm

logger = logging.getLogger(__name__)


RELEASE_CRD_YAML = '''\
apiVersion: apiextensions.k8s.io/v1beta1
kind: CustomResourceDefinition
metadata:
  creationTimestamp: 2018-02-24T14:56:33Z
  name: releases.jenkins.io
  resourceVersion: "557150"
  selfLink: /apis/apiextensions.k8s.io/v1beta1/customresourcedefinitions/releases.jenkins.io
  uid: e77f4e08-1972-11e8-988e-42010a8401df
spec:
  group: jenkins.io
  names:
    kind: Release
    listKind: ReleaseList
    plural: releases
    shortNames:
    - rel
    singular: release
    categories:
    - all
  scope: Namespaced
  version: v1'''


def _ensure_parent_dir(path: str):
    if (parent_dir := os.path.dirname(os.path.abspath(path))):
        os.makedirs(parent_dir, exist_ok=True)


def release_yaml(release: cm.Release) -> str:
    return yaml.safe_dump(
        release.as_dict(),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def write_release_yaml(release: cm.Release, path: str):
    _ensure_parent_dir(path)

    with open(path, 'w') as f:
        f.write(release_yaml(release))

    logger.info(f'generated: {path}')


def read_release_yaml(path: str) -> cm.Release:
    with open(path) as f:
        return cm.Release.from_dict(yaml.safe_load(f))


def write_crd_yaml(path: str, overwrite: bool=False) -> bool:
    '''
    writes the `Release` custom resource definition to the given path, unless the file
    already exists and `overwrite` is not set. Returns whether the file was written.
    '''
    if os.path.exists(path) and not overwrite:
        logger.info(f'not overwriting existing {path}')
        return False

    _ensure_parent_dir(path)

    with open(path, 'w') as f:
        f.write(RELEASE_CRD_YAML)

    logger.info(f'generated: {path}')
    return True


def write_markdown(markdown: str, path: str):
    _ensure_parent_dir(path)

    with open(path, 'w') as f:
        f.write(markdown)

    logger.info(f'Generated Changelog: {path}')
