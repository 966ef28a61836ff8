# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import argparse
import logging
import sys

import git.exc
import github3.exceptions

import ccc.github
import ccc.jira
import changelog.fetch
import changelog.issues
import changelog.markdown
import changelog.model as cm
import changelog.pipeline
import changelog.publish
import ci.log
import ci.util
import ctx
import github.issues
import github.release
import github.user
import gitutil
import kube.activity
import kube.ctx

logger = logging.getLogger(__name__)

DESCRIPTION = '''
Generates a changelog as markdown for the given git commit range, and a `jenkins.io/v1`
`Release` document describing the contained commits, issues, pull requests and dependency
updates. Optionally, the changelog is published as a GitHub release.

Header and footer are mako templates, which may refer to all attributes of the release spec
(e.g. `${version}`).
'''

EXAMPLES = '''
examples:

  # generate a changelog between the previous and the latest version-tag
  changelog --version 2.0.1

  # specify the revision range and a header template
  changelog --previous-rev 1.0.0 --rev 2.0.1 --version 2.0.1 --header '# Release ${version}'
'''


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='changelog',
        description=DESCRIPTION,
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    revisions = parser.add_argument_group('revisions')
    revisions.add_argument(
        '--previous-rev', '-p',
        help='the previous tag or SHA to compare against (default: previous version-tag)',
    )
    revisions.add_argument(
        '--previous-date',
        help='the previous date to find a revision in format \'MonthName dayNumber year\'',
    )
    revisions.add_argument(
        '--rev', '-c',
        dest='current_rev',
        help='the current tag or SHA (default: latest version-tag)',
    )

    output = parser.add_argument_group('output')
    output.add_argument(
        '--templates-dir', '-t',
        help='the directory to write the release documents to (default: chart templates dir)',
    )
    output.add_argument('--release-yaml-file', default='release.yaml')
    output.add_argument('--crd-yaml-file', default='release-crd.yaml')
    output.add_argument(
        '--output-markdown',
        help='the file to write the changelog to if not updating a release',
    )
    output.add_argument(
        '--generate-yaml', '-y',
        action=argparse.BooleanOptionalAction,
        default=True,
        help='generate the release YAML file',
    )
    output.add_argument('--crd', '-r', action='store_true', help='generate the release CRD')
    output.add_argument('--overwrite', '-o', action='store_true', help='overwrite existing CRD')
    output.add_argument('--header', help='mako template for the changelog header')
    output.add_argument('--header-file', type=ci.util.existing_file)
    output.add_argument('--footer', help='mako template for the changelog footer')
    output.add_argument('--footer-file', type=ci.util.existing_file)

    release = parser.add_argument_group('release')
    release.add_argument('--version', '-v', help='the version of the release')
    release.add_argument(
        '--update-release',
        action=argparse.BooleanOptionalAction,
        default=True,
        help='update the GitHub release with the changelog',
    )
    release.add_argument('--include-merge-commits', '-m', action='store_true')
    release.add_argument(
        '--fail-if-no-commits',
        action='store_true',
        help='fail if there are no commits in the revision range',
    )

    repo = parser.add_argument_group('repository')
    repo.add_argument('--repo-dir', default='.', help='the git repository\'s directory')
    repo.add_argument(
        '--git-url',
        help='url of the repository (default: url of remote `origin`)',
    )
    repo.add_argument('--branch', default=changelog.pipeline.ChangelogOptions.branch)
    repo.add_argument('--github-api-url', help='api url of the GitHub instance')
    repo.add_argument(
        '--issue-tracker',
        choices=[kind.value for kind in changelog.issues.IssueKind],
        default=changelog.issues.IssueKind.GIT.value,
    )
    repo.add_argument('--jira-server')
    repo.add_argument('--jira-project')
    repo.add_argument(
        '--no-user-lookup',
        action='store_true',
        help='do not resolve users (use names and emails as recorded in git)',
    )

    pipeline = parser.add_argument_group('pipeline activity')
    pipeline.add_argument('--build', '-n', help='the build number (default: $BUILD_NUMBER)')
    pipeline.add_argument('--namespace', default=changelog.pipeline.ChangelogOptions.namespace)

    parser.add_argument('--verbose', action='store_true')

    return parser.parse_args(argv)


def repo_info_from_args(
    parsed: argparse.Namespace,
    git_helper: gitutil.GitHelper,
) -> cm.GitRepoInfo:
    if (git_url := parsed.git_url):
        return cm.GitRepoInfo.parse(git_url)

    try:
        origin = git_helper.repo.remote('origin')
    except ValueError:
        ci.util.fail('repository has no remote `origin` - please pass --git-url')

    return cm.GitRepoInfo.parse(origin.url)


def issue_tracker(
    parsed: argparse.Namespace,
    repository,
) -> changelog.issues.IssueTracker:
    kind = changelog.issues.IssueKind(parsed.issue_tracker)

    if kind is changelog.issues.IssueKind.JIRA:
        jira_cfg = ctx.cfg.jira
        return ccc.jira.JiraIssueTracker(
            client=ccc.jira.from_cfg(jira_cfg),
            server=jira_cfg.server,
            project=jira_cfg.project,
        )

    return github.issues.GitHubIssueTracker(repository=repository)


def options_from_args(parsed: argparse.Namespace) -> changelog.pipeline.ChangelogOptions:
    build_number = ctx.cfg.build.build_number if ctx.cfg.build else None
    namespace = ctx.cfg.kube.namespace if ctx.cfg.kube else None

    return changelog.pipeline.ChangelogOptions(
        previous_rev=parsed.previous_rev,
        previous_date=parsed.previous_date,
        current_rev=parsed.current_rev,
        version=parsed.version,
        templates_dir=parsed.templates_dir,
        release_yaml_file=parsed.release_yaml_file,
        crd_yaml_file=parsed.crd_yaml_file,
        output_markdown_file=parsed.output_markdown,
        generate_release_yaml=parsed.generate_yaml,
        generate_crd=parsed.crd,
        overwrite_crd=parsed.overwrite,
        update_release=parsed.update_release,
        include_merge_commits=parsed.include_merge_commits,
        fail_if_no_commits=parsed.fail_if_no_commits,
        header=parsed.header,
        header_file=parsed.header_file,
        footer=parsed.footer,
        footer_file=parsed.footer_file,
        branch=parsed.branch,
        build_number=build_number,
        namespace=namespace or parsed.namespace,
    )


def run(parsed: argparse.Namespace) -> changelog.pipeline.ChangelogResult | None:
    git_helper = gitutil.GitHelper(repo=parsed.repo_dir)
    repo_info = repo_info_from_args(parsed=parsed, git_helper=git_helper)
    options = options_from_args(parsed)

    github_api = ccc.github.github_api(host=repo_info.host)
    repository = github_api.repository(repo_info.owner, repo_info.name)

    if parsed.no_user_lookup:
        user_lookup = None
    else:
        user_lookup = github.user.GitHubUserLookup(
            github_api=github_api,
            repository=repository,
        )

    if options.build_number:
        custom_api = kube.ctx.Ctx().create_custom_api()
    else:
        custom_api = None

    return changelog.pipeline.generate_changelog(
        options=options,
        git_helper=git_helper,
        repo_info=repo_info,
        tracker=issue_tracker(parsed=parsed, repository=repository),
        user_lookup=user_lookup,
        release_store=github.release.GitHubReleaseStore(repository=repository),
        custom_api=custom_api,
    )


def main(argv=None):
    parsed = parse_args(argv)

    ci.log.configure_default_logging(
        stdout_level=logging.DEBUG if parsed.verbose else logging.INFO,
    )

    # write parsed args to global ctx module so cfg-sources may retrieve them
    ctx.args = parsed
    ctx.load_config()

    try:
        run(parsed)
    except (
        changelog.fetch.CommitSourceError,
        changelog.pipeline.NoCommitsError,
        changelog.publish.ReleaseStoreError,
        changelog.markdown.TemplateRenderError,
        kube.activity.ActivityUpdateError,
        git.exc.InvalidGitRepositoryError,
        git.exc.NoSuchPathError,
        github3.exceptions.GitHubError,
        ValueError,
        OSError,
    ) as e:
        logger.error(f'failed to generate changelog: {e}')
        sys.exit(1)


if __name__ == '__main__':
    main()
