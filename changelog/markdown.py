# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections
import dataclasses
import logging
import os
import re
import threading

import mako.template

import changelog.model as cm

logger = logging.getLogger(__name__)

'''
workaround bug in mako: use lock to sequentialise invocations of mako.template.Template
see: https://github.com/sqlalchemy/mako/issues/378
'''
template_lock = threading.Lock()


class TemplateRenderError(RuntimeError):
    pass


@dataclasses.dataclass
class Header:
    level: int
    title: str

    def __str__(self):
        return f"{'#' * self.level} {self.title}\n"  # there should be a new line after the header


@dataclasses.dataclass
class ListItem:
    text: str

    def __str__(self):
        return f'* {self.text}'


@dataclasses.dataclass(frozen=True)
class Section:
    display: str
    identifiers: tuple[str, ...]


sections = (
    Section(display='New Features', identifiers=('feat', 'feature')),
    Section(display='Bug Fixes', identifiers=('fix', 'bugfix')),
    Section(display='Documentation', identifiers=('docs', 'doc')),
    Section(display='Chores', identifiers=('chore', 'build', 'ci')),
)
other_changes = Section(display='Other Changes', identifiers=())

# identifier -> Section
sections_by_identifier: dict[str, Section] = {i: s for s in sections for i in s.identifiers}

_conventional_commit_pattern = re.compile(
    r'^(?P<kind>\w+)(?:\((?P<scope>[^)]*)\))?!?:\s*(?P<description>.+)$'
)


def parse_conventional_commit(message: str) -> tuple[Section, str | None, str]:
    '''
    returns section, scope and description of the given commit message's subject line. Messages
    not following the conventional-commits format are assigned to "Other Changes".
    '''
    subject = (message or '').strip().split('\n', 1)[0].strip()

    if not (match := _conventional_commit_pattern.match(subject)):
        return other_changes, None, subject

    section = sections_by_identifier.get(match.group('kind').lower(), other_changes)
    return section, match.group('scope') or None, match.group('description').strip()


def _user_ref(user: cm.UserDetails | None) -> str:
    if not user:
        return ''

    display_name = user.display_name()
    if user.url:
        return f'[{display_name}]({user.url})'
    return display_name


def _commit_item(commit: cm.CommitSummary) -> ListItem:
    _, scope, description = parse_conventional_commit(commit.message)

    text = f'**{scope}**: {description}' if scope else description

    short_sha = commit.sha[:7]
    if commit.url:
        text += f' ([{short_sha}]({commit.url}))'
    else:
        text += f' ({short_sha})'

    if (author := _user_ref(commit.author)):
        text += f' {author}'

    return ListItem(text=text)


def _issue_item(issue: cm.IssueSummary) -> ListItem:
    ref = f'[#{issue.id}]({issue.url})' if issue.url else f'#{issue.id}'
    text = f'{ref} {issue.title or ""}'.rstrip()

    if (user := _user_ref(issue.user)):
        text += f' ({user})'

    return ListItem(text=text)


def _release_ref(name: str | None, url: str | None) -> str:
    if not name:
        return ''
    if url:
        return f'[{name}]({url})'
    return name


def _dependency_table(updates: list[cm.DependencyUpdate]) -> list[str]:
    lines = [
        '| Dependency | Component | New Version | Old Version |',
        '| ---------- | --------- | ----------- | ----------- |',
    ]
    for update in updates:
        dependency = f'{update.owner}/{update.repo}'
        if update.url:
            dependency = f'[{dependency}]({update.url})'

        lines.append(
            f'| {dependency} | {update.component or ""} '
            f'| {_release_ref(update.toReleaseName, update.toReleaseHTMLURL)} '
            f'| {_release_ref(update.fromReleaseName, update.fromReleaseHTMLURL)} |'
        )
    return lines


def render(spec: cm.ReleaseSpec) -> list[Header | ListItem | str]:
    objs = []

    # group commits by section, keeping their order within each section
    commits_by_section: dict[Section, list[cm.CommitSummary]] = collections.defaultdict(list)
    for commit in spec.commits:
        section, _, _ = parse_conventional_commit(commit.message)
        commits_by_section[section].append(commit)

    if commits_by_section:
        objs.append(Header(level=2, title='Changes'))

    for section in (*sections, other_changes):
        if not (commits := commits_by_section.get(section)):
            continue
        objs.append(Header(level=3, title=section.display))
        objs.extend(_commit_item(commit) for commit in commits)
        objs.append('')

    for title, issues in (
        ('Issues', spec.issues),
        ('Pull Requests', spec.pullRequests),
    ):
        if not issues:
            continue
        objs.append(Header(level=3, title=title))
        objs.extend(_issue_item(issue) for issue in issues)
        objs.append('')

    if spec.dependencyUpdates:
        objs.append(Header(level=3, title='Dependency Updates'))
        objs.extend(_dependency_table(spec.dependencyUpdates))
        objs.append('')

    return objs


def render_markdown(spec: cm.ReleaseSpec) -> str:
    lines = [str(obj) for obj in render(spec)]
    if not lines:
        return ''
    return '\n'.join(lines).rstrip('\n') + '\n'


def template_variables(spec: cm.ReleaseSpec) -> dict:
    '''
    returns the variables available to header- and footer-templates: all attributes of the
    release spec (e.g. `${version}`, `${gitRepository}`), plus the spec itself as `spec`.
    '''
    return {
        **{field.name: getattr(spec, field.name) for field in dataclasses.fields(spec)},
        'spec': spec,
    }


def template_text(
    template: str | None=None,
    template_file: str | None=None,
) -> str:
    if template:
        return template
    if not template_file:
        return ''

    if not os.path.isfile(template_file):
        raise TemplateRenderError(f'not an existing file: {template_file}')

    with open(template_file) as f:
        return f.read()


_comment_line = re.compile(r'^([ \t]*)##', re.MULTILINE)


def escape_markdown_headers(template: str) -> str:
    '''
    mako treats lines starting with `##` as comments. Rewrites such lines, so markdown headers
    (`## Changes`) are rendered as-is.
    '''
    return _comment_line.sub(r"\1${'##'}", template)


def apply_template(
    name: str,
    template: str,
    spec: cm.ReleaseSpec,
) -> str:
    if not template:
        return ''

    try:
        with template_lock:
            t = mako.template.Template(template, preprocessor=escape_markdown_headers)
            return t.render(**template_variables(spec))
    except Exception as e:
        raise TemplateRenderError(f'failed to render {name} template: {e}') from e


def apply_header_and_footer(
    body: str,
    spec: cm.ReleaseSpec,
    header: str | None=None,
    header_file: str | None=None,
    footer: str | None=None,
    footer_file: str | None=None,
) -> str:
    '''
    returns header + body + footer. Header and footer are mako-templates, either passed as text
    or read from the given files (text takes precedence).

    raises `TemplateRenderError` if a template cannot be read, parsed or rendered.
    '''
    header = apply_template(
        name='header',
        template=template_text(template=header, template_file=header_file),
        spec=spec,
    )
    footer = apply_template(
        name='footer',
        template=template_text(template=footer, template_file=footer_file),
        spec=spec,
    )

    return header + body + footer


def render_changelog(
    spec: cm.ReleaseSpec,
    header: str | None=None,
    header_file: str | None=None,
    footer: str | None=None,
    footer_file: str | None=None,
) -> str:
    markdown = apply_header_and_footer(
        body=render_markdown(spec),
        spec=spec,
        header=header,
        header_file=header_file,
        footer=footer,
        footer_file=footer_file,
    )
    logger.debug(f'Generated release notes:\n\n{markdown}\n')
    return markdown
