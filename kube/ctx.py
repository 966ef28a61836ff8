# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import logging
import os

import kubernetes.client
import kubernetes.config
from kubernetes import client

from ci.util import existing_file
import ctx as global_ctx

logger = logging.getLogger(__name__)


class Ctx:
    '''
    handles the execution context of kubernetes-api calls.
    Most prominently the retrieval of the 'kubeconfig' to use, which is either configured
    (see `ctx.KubeCfg`) or passed via env var KUBECONFIG. If neither is present, the in-cluster
    configuration is used.
    '''

    def __init__(self, kubeconfig: str | None=None):
        self.kubeconfig = kubeconfig

    def _kubeconfig_path(self) -> str | None:
        if self.kubeconfig:
            return self.kubeconfig

        if (cfg := global_ctx.cfg) and cfg.kube and cfg.kube.kubeconfig:
            return cfg.kube.kubeconfig

        return os.environ.get('KUBECONFIG')

    def get_kubecfg(self) -> kubernetes.client.ApiClient:
        if (kubeconfig := self._kubeconfig_path()):
            return kubernetes.config.new_client_from_config(
                config_file=existing_file(kubeconfig),
            )

        logger.info('no kubeconfig configured - using in-cluster configuration')
        kubernetes.config.load_incluster_config()
        return kubernetes.client.ApiClient()

    def create_custom_api(self) -> client.CustomObjectsApi:
        cfg = self.get_kubecfg()
        return client.CustomObjectsApi(cfg)
