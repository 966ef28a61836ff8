# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import dataclasses
import datetime
import logging
import os

import changelog.assemble
import changelog.fetch
import changelog.issues
import changelog.markdown
import changelog.model as cm
import changelog.output
import changelog.publish
import changelog.record
import changelog.users
import ci.util
import gitutil
import kube.activity

logger = logging.getLogger(__name__)


class NoCommitsError(RuntimeError):
    pass


@dataclasses.dataclass(kw_only=True)
class ChangelogOptions:
    '''
    previous_rev: start of the revision-range (exclusive); if absent, previous_date, then the
        previous version-tag and finally the repository's first commit is used
    current_rev: end of the revision-range (inclusive); defaults to the latest version-tag
    version: version of the release; if absent, helm chart placeholders are used
    templates_dir: directory to write release documents to; defaults to the `templates` dir
        of the first helm chart found in the repository
    '''
    previous_rev: str | None = None
    previous_date: str | None = None
    current_rev: str | None = None
    version: str | None = None
    templates_dir: str | None = None
    release_yaml_file: str = 'release.yaml'
    crd_yaml_file: str = 'release-crd.yaml'
    output_markdown_file: str | None = None
    generate_release_yaml: bool = True
    generate_crd: bool = False
    overwrite_crd: bool = False
    update_release: bool = True
    include_merge_commits: bool = False
    fail_if_no_commits: bool = False
    header: str | None = None
    header_file: str | None = None
    footer: str | None = None
    footer_file: str | None = None
    branch: str = changelog.assemble.DEFAULT_BRANCH
    build_number: str | None = None
    namespace: str = 'jx'


@dataclasses.dataclass
class ChangelogResult:
    release: cm.Release
    markdown: str
    release_yaml_path: str | None = None
    crd_yaml_path: str | None = None
    activity_updated: bool = False


def clean_version(version: str | None) -> str | None:
    if not version:
        return version
    return version.removeprefix('v')


def find_templates_dir(repo_dir: str) -> str:
    '''
    returns the `templates` directory of the first helm chart (i.e. directory containing a
    `Chart.yaml` file) found in the given directory (in lexicographical order)
    '''
    for dirpath, dirnames, filenames in os.walk(repo_dir):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith('.'))
        if 'Chart.yaml' in filenames:
            return os.path.join(dirpath, 'templates')

    ci.util.fail(f'Could not find helm chart in {repo_dir}')


def resolve_revisions(
    options: ChangelogOptions,
    git_helper: gitutil.GitHelper,
) -> tuple[str | None, str | None]:
    previous_rev = options.previous_rev
    if not previous_rev and options.previous_date:
        previous_rev = git_helper.revision_before_date(options.previous_date)
        if not previous_rev:
            ci.util.fail(f'Failed to find commits before date {options.previous_date}')

    if not previous_rev:
        previous_rev, _ = git_helper.previous_tag_commit()

    if not previous_rev:
        # assume this is the first release
        previous_rev = git_helper.first_commit()

    current_rev = options.current_rev
    if not current_rev:
        current_rev, _ = git_helper.latest_tag_commit()

    return previous_rev, current_rev or 'HEAD'


def fetch_commits(
    options: ChangelogOptions,
    git_helper: gitutil.GitHelper,
    previous_rev: str,
    current_rev: str,
) -> list[cm.RawCommit]:
    try:
        commits = changelog.fetch.fetch_commits(
            repo=git_helper.repo,
            from_rev=previous_rev,
            to_rev=current_rev,
        )
    except changelog.fetch.CommitSourceError as cse:
        if options.fail_if_no_commits:
            raise
        logger.warning(
            f'failed to find git commits between revision {previous_rev} and {current_rev} '
            f'due to: {cse}'
        )
        return []

    commits = changelog.fetch.strip_release_commit(commits)

    if not commits:
        if options.fail_if_no_commits:
            raise NoCommitsError(f'no commits found between {previous_rev} and {current_rev}')
        logger.warning(f'no commits found between {previous_rev} and {current_rev}')

    changelog.fetch.log_commits(commits)
    return commits


def generate_changelog(
    options: ChangelogOptions,
    git_helper: gitutil.GitHelper,
    repo_info: cm.GitRepoInfo,
    tracker: changelog.issues.IssueTracker,
    user_lookup: changelog.users.UserLookup | None=None,
    release_store: changelog.publish.ReleaseStore | None=None,
    custom_api=None,
    now: datetime.datetime | None=None,
) -> ChangelogResult | None:
    '''
    generates the changelog for the configured revision-range, and writes / publishes it as
    configured. Returns None if there is nothing to do (no previous revision could be
    determined).

    Optional collaborators may be omitted: w/o `user_lookup`, users are not resolved, w/o
    `release_store` no release is published, and w/o `custom_api` no PipelineActivity is updated.
    '''
    previous_rev, current_rev = resolve_revisions(options=options, git_helper=git_helper)
    if not previous_rev:
        logger.info('no previous commit version found so change diff unavailable')
        return None

    templates_dir = options.templates_dir or find_templates_dir(git_helper.working_tree_dir)
    os.makedirs(templates_dir, exist_ok=True)

    logger.info(f'Generating change log from git ref {previous_rev} => {current_rev}')

    commits = fetch_commits(
        options=options,
        git_helper=git_helper,
        previous_rev=previous_rev,
        current_rev=current_rev,
    )

    state = changelog.assemble.RunState.create(
        tracker=tracker,
        resolver=changelog.users.UserResolver(lookup=user_lookup),
    )
    assembly = changelog.assemble.assemble_commits(
        commits=commits,
        state=state,
        include_merge_commits=options.include_merge_commits,
        git_http_url=repo_info.https_url,
        branch=options.branch,
    )

    release = changelog.record.build_release(
        assembly=assembly,
        version=options.version,
        repo_info=repo_info,
        now=now,
    )

    markdown = changelog.markdown.render_changelog(
        spec=release.spec,
        header=options.header,
        header_file=options.header_file,
        footer=options.footer,
        footer_file=options.footer_file,
    )

    version = options.version
    if version and options.update_release and release_store:
        tag_name = changelog.publish.resolve_tag_name(
            version=version,
            tags=git_helper.tags(),
        )
        if (url := changelog.publish.publish_release(
            store=release_store,
            version=version,
            tag_name=tag_name,
            markdown=markdown,
            git_http_url=repo_info.https_url,
        )):
            release.spec.releaseNotesURL = url
    elif options.output_markdown_file:
        changelog.output.write_markdown(markdown=markdown, path=options.output_markdown_file)
    else:
        logger.info(f'Generated Changelog:\n{markdown}')

    result = ChangelogResult(
        release=release,
        markdown=markdown,
    )

    if options.generate_release_yaml:
        release_file = os.path.join(templates_dir, options.release_yaml_file)
        changelog.output.write_release_yaml(release=release, path=release_file)
        result.release_yaml_path = release_file

    if options.generate_crd:
        crd_file = os.path.join(templates_dir, options.crd_yaml_file)
        if changelog.output.write_crd_yaml(path=crd_file, overwrite=options.overwrite_crd):
            git_helper.add(templates_dir)
            result.crd_yaml_path = crd_file

    if custom_api:
        result.activity_updated = kube.activity.update_pipeline_activity(
            custom_api=custom_api,
            namespace=options.namespace,
            owner=repo_info.owner,
            repository=repo_info.name,
            branch=options.branch,
            build=options.build_number,
            release=release,
            version=clean_version(version),
        )

    return result
