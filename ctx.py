# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import dataclasses
import os

import dacite

import ci.util

'''
Execution context. Filled upon invocation of changelog/cli.py, read by submodules

Configuration is read from (in order of increasing precedence):

- a YAML file ($CHANGELOG_CONFIG, or ~/.changelog-config.yaml)
- environment variables
- command line arguments
'''

args = None # the parsed command line arguments
cfg = None # initialised upon importing this module

DEFAULT_CFG_FILE_NAME = '.changelog-config.yaml'


@dataclasses.dataclass
class GithubCfg:
    api_url: str | None = None
    username: str | None = None
    token: str | None = None
    tls_verify: bool | None = None


@dataclasses.dataclass
class JiraCfg:
    server: str | None = None
    username: str | None = None
    token: str | None = None
    project: str | None = None


@dataclasses.dataclass
class KubeCfg:
    namespace: str | None = None
    kubeconfig: str | None = None


@dataclasses.dataclass
class BuildCfg:
    build_number: str | None = None


@dataclasses.dataclass
class GlobalConfig:
    github: GithubCfg | None = None
    jira: JiraCfg | None = None
    kube: KubeCfg | None = None
    build: BuildCfg | None = None


def merge_cfgs(ctor, left, right):
    if not left or not right:
        return left or right # nothing to merge

    left_dict = dataclasses.asdict(left)

    # do not overwrite existing values w/ None
    right_dict = {k: v for k,v in dataclasses.asdict(right).items() if v is not None}

    merged = ci.util.merge_dicts(left_dict, right_dict)

    return dacite.from_dict(
        data_class=ctor,
        data=merged,
    )


def merge_global_cfg(left: GlobalConfig, right: GlobalConfig) -> GlobalConfig:
    return GlobalConfig(
        github=merge_cfgs(GithubCfg, left.github, right.github),
        jira=merge_cfgs(JiraCfg, left.jira, right.jira),
        kube=merge_cfgs(KubeCfg, left.kube, right.kube),
        build=merge_cfgs(BuildCfg, left.build, right.build),
    )


def _config_from_env(env=os.environ):
    github_cfg = GithubCfg(
        username=env.get('GIT_USERNAME'),
        token=env.get('GIT_API_TOKEN') or env.get('GITHUB_TOKEN'),
    )

    jira_cfg = JiraCfg(
        token=env.get('JIRA_API_TOKEN'),
    )

    kube_cfg = KubeCfg(
        kubeconfig=env.get('KUBECONFIG'),
    )

    build_cfg = BuildCfg(
        build_number=env.get('BUILD_NUMBER') or env.get('BUILD_ID'),
    )

    return GlobalConfig(
        github=github_cfg,
        jira=jira_cfg,
        kube=kube_cfg,
        build=build_cfg,
    )


def config_file_path(env=os.environ) -> str:
    if (path := env.get('CHANGELOG_CONFIG')):
        return path
    return os.path.join(os.path.expanduser('~'), DEFAULT_CFG_FILE_NAME)


def _config_from_file(path: str=None):
    path = path or config_file_path()
    if not os.path.isfile(path):
        return None

    raw = ci.util.parse_yaml_file(path) or {}

    return dacite.from_dict(
        data_class=GlobalConfig,
        data=raw,
    )


def _config_from_parsed_argv():
    if not args:
        return None

    return GlobalConfig(
        github=GithubCfg(
            api_url=getattr(args, 'github_api_url', None),
        ),
        jira=JiraCfg(
            server=getattr(args, 'jira_server', None),
            project=getattr(args, 'jira_project', None),
        ),
        kube=KubeCfg(
            namespace=getattr(args, 'namespace', None),
        ),
        build=BuildCfg(
            build_number=getattr(args, 'build', None),
        ),
    )


def load_config():
    global cfg
    cfg = GlobalConfig()

    additional_cfgs = (
        _config_from_file(),
        _config_from_env(),
        _config_from_parsed_argv(),
    )

    for additional_cfg in additional_cfgs:
        if not additional_cfg:
            continue

        cfg = merge_global_cfg(cfg, additional_cfg)

    return cfg


load_config()
