# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


'''
data model of the changelog pipeline.

Classes with camelCase attributes are wire-models: they are serialised verbatim into the
`jenkins.io/v1` `Release` custom resource (and read back from it), so attribute names must not
be changed.
'''

import dataclasses
import datetime
import re
import urllib.parse

import dacite


RELEASE_API_VERSION = 'jenkins.io/v1'
RELEASE_KIND = 'Release'


@dataclasses.dataclass(frozen=True)
class GitIdentity:
    '''
    name and email as recorded in a git commit (author or committer). not normalised.
    '''
    name: str
    email: str

    def __str__(self):
        return f'{self.name} <{self.email}>'


@dataclasses.dataclass(frozen=True)
class RawCommit:
    sha: str
    message: str
    author: GitIdentity
    committer: GitIdentity
    timestamp: datetime.datetime | None = None
    parent_count: int = 1

    @property
    def is_merge_commit(self) -> bool:
        return self.parent_count > 1


@dataclasses.dataclass(frozen=True, kw_only=True)
class TrackerUser:
    '''
    a user as returned by an issue tracker (e.g. a GitHub login or a Jira account)
    '''
    login: str
    name: str | None = None
    email: str | None = None
    url: str | None = None
    avatar_url: str | None = None


@dataclasses.dataclass(kw_only=True)
class TrackerIssue:
    '''
    an issue (or pull request) as returned by an issue tracker.

    `assignees` is None if the tracker did not report assignees at all (as opposed to an empty
    list, which means "nobody assigned").
    '''
    id: str
    link: str | None = None
    title: str | None = None
    body: str | None = None
    state: str | None = None
    created: datetime.datetime | None = None
    author: TrackerUser | None = None
    closed_by: TrackerUser | None = None
    assignees: list[TrackerUser] | None = None
    labels: list[str] = dataclasses.field(default_factory=list)
    pull_request: bool = False


@dataclasses.dataclass(kw_only=True)
class UserDetails:
    login: str | None = None
    name: str | None = None
    email: str | None = None
    url: str | None = None
    avatarUrl: str | None = None
    creationTimestamp: str | None = None

    @property
    def dedup_key(self) -> str | None:
        if self.email:
            return self.email.lower()
        return self.name or self.login

    def display_name(self) -> str:
        if self.login:
            return f'@{self.login}'
        return self.name or self.email or ''


@dataclasses.dataclass(kw_only=True)
class IssueLabel:
    name: str
    url: str | None = None
    color: str | None = None


@dataclasses.dataclass(kw_only=True)
class IssueSummary:
    id: str
    url: str | None = None
    title: str | None = None
    body: str | None = None
    state: str | None = None
    message: str | None = None
    user: UserDetails | None = None
    closedBy: UserDetails | None = None
    assignees: list[UserDetails] = dataclasses.field(default_factory=list)
    labels: list[IssueLabel] = dataclasses.field(default_factory=list)
    creationTimestamp: str | None = None


@dataclasses.dataclass(kw_only=True)
class CommitSummary:
    sha: str
    message: str
    url: str | None = None
    branch: str | None = None
    author: UserDetails | None = None
    committer: UserDetails | None = None
    issueIds: list[str] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(kw_only=True)
class DependencyUpdate:
    owner: str
    repo: str
    component: str | None = None
    host: str | None = None
    url: str | None = None
    fromVersion: str | None = None
    fromReleaseName: str | None = None
    fromReleaseHTMLURL: str | None = None
    toVersion: str | None = None
    toReleaseName: str | None = None
    toReleaseHTMLURL: str | None = None

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.owner, self.repo, self.component or '')


@dataclasses.dataclass(kw_only=True)
class ReleaseSpec:
    name: str | None = None
    version: str | None = None
    gitOwner: str | None = None
    gitRepository: str | None = None
    gitHttpUrl: str | None = None
    gitCloneUrl: str | None = None
    commits: list[CommitSummary] = dataclasses.field(default_factory=list)
    issues: list[IssueSummary] = dataclasses.field(default_factory=list)
    pullRequests: list[IssueSummary] = dataclasses.field(default_factory=list)
    dependencyUpdates: list[DependencyUpdate] = dataclasses.field(default_factory=list)
    releaseNotesURL: str | None = None


@dataclasses.dataclass(kw_only=True)
class ReleaseMetadata:
    name: str
    creationTimestamp: str | None = None


@dataclasses.dataclass(kw_only=True)
class Release:
    metadata: ReleaseMetadata
    spec: ReleaseSpec
    apiVersion: str = RELEASE_API_VERSION
    kind: str = RELEASE_KIND

    def as_dict(self) -> dict:
        raw = dataclasses.asdict(self, dict_factory=_omit_empty)
        # keep conventional ordering of top-level attributes in serialised documents
        return {
            'apiVersion': raw.pop('apiVersion'),
            'kind': raw.pop('kind'),
            **raw,
        }

    @staticmethod
    def from_dict(raw: dict) -> 'Release':
        return dacite.from_dict(
            data_class=Release,
            data=raw,
        )


def _omit_empty(items) -> dict:
    # fields that are None should not be included in the output; neither should be empty
    # optional lists (commits are kept, as an empty changelog is still a valid one)
    return {
        k: v for k, v in items
        if v is not None and not (v == [] and k != 'commits')
    }


@dataclasses.dataclass(frozen=True, kw_only=True)
class GitRepoInfo:
    '''
    coordinates of a git repository hosted on an SCM-server
    '''
    host: str
    owner: str
    name: str
    scheme: str = 'https'

    @property
    def https_url(self) -> str:
        return f'{self.scheme}://{self.host}/{self.owner}/{self.name}'

    @property
    def clone_url(self) -> str:
        return f'{self.https_url}.git'

    @property
    def full_name(self) -> str:
        return f'{self.owner}/{self.name}'

    @staticmethod
    def parse(url: str) -> 'GitRepoInfo':
        '''
        parses git-urls in one of the forms:

        - https://github.com/owner/repo(.git)
        - git@github.com:owner/repo(.git)
        - ssh://git@github.com/owner/repo(.git)
        - github.com/owner/repo
        '''
        if not url:
            raise ValueError('url must not be empty')

        scheme = 'https'
        if (scp_like := _scp_like_git_url.fullmatch(url)):
            host = scp_like.group('host')
            path = scp_like.group('path')
        else:
            if '://' not in url:
                url = f'https://{url}'
            parsed = urllib.parse.urlparse(url)
            host = parsed.hostname
            path = parsed.path
            if parsed.scheme in ('http', 'https'):
                scheme = parsed.scheme

        parts = [p for p in path.strip('/').split('/') if p]
        if not host or len(parts) < 2:
            raise ValueError(f'not a valid git repository url: {url}')

        return GitRepoInfo(
            host=host,
            owner='/'.join(parts[:-1]),
            name=parts[-1].removesuffix('.git'),
            scheme=scheme,
        )


_scp_like_git_url = re.compile(r'(?:[^@/]+@)?(?P<host>[^:/]+):(?P<path>[^/].*)')


@dataclasses.dataclass
class Assembly:
    '''
    accumulates the contents of a release while commits are being processed
    '''
    commits: list[CommitSummary] = dataclasses.field(default_factory=list)
    issues: list[IssueSummary] = dataclasses.field(default_factory=list)
    pull_requests: list[IssueSummary] = dataclasses.field(default_factory=list)
    dependency_updates: list[DependencyUpdate] = dataclasses.field(default_factory=list)


def format_timestamp(timestamp: datetime.datetime | None) -> str | None:
    if not timestamp:
        return None
    if timestamp.tzinfo:
        timestamp = timestamp.astimezone(tz=datetime.timezone.utc)
    return timestamp.strftime('%Y-%m-%dT%H:%M:%SZ')
