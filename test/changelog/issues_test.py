# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import datetime
import logging

import pytest

import changelog.issues as examinee
import changelog.model as cm
import changelog.users


@pytest.mark.parametrize(
    'message,kind,expected',
    [
        ('fixes #42', examinee.IssueKind.GIT, ['42']),
        ('fixes #42 and #7, see #42', examinee.IssueKind.GIT, ['42', '7']),
        ('no references here', examinee.IssueKind.GIT, []),
        ('', examinee.IssueKind.GIT, []),
        (None, examinee.IssueKind.GIT, []),
        ('ABC-123: fix foo (see XY-1)', examinee.IssueKind.JIRA, ['ABC-123', 'XY-1']),
        ('A-1 is too short', examinee.IssueKind.JIRA, []),
        ('fixes #42', examinee.IssueKind.JIRA, []),
    ],
)
def test_extract_issue_references(message, kind, expected):
    assert examinee.extract_issue_references(message, kind=kind) == expected


def test_pattern_for_kind():
    assert examinee.pattern_for_kind('git') is examinee.NUMERIC_PATTERN
    assert examinee.pattern_for_kind(examinee.IssueKind.JIRA) is examinee.PROJECT_KEY_PATTERN


@pytest.fixture
def resolver():
    return changelog.users.UserResolver()


def test_enrich_routes_issues_and_pull_requests(fake_tracker, make_tracker_issue, resolver):
    tracker = fake_tracker(issues={
        '1': make_tracker_issue('1'),
        '2': make_tracker_issue('2', pull_request=True),
    })
    enricher = examinee.IssueEnricher(tracker=tracker, resolver=resolver)
    assembly = cm.Assembly()

    enricher.enrich('1', assembly)
    enricher.enrich('2', assembly)

    assert [i.id for i in assembly.issues] == ['1']
    assert [p.id for p in assembly.pull_requests] == ['2']


def test_enrich_looks_up_each_issue_once(fake_tracker, make_tracker_issue, resolver):
    tracker = fake_tracker(issues={'42': make_tracker_issue('42')}, failing={'13'})
    enricher = examinee.IssueEnricher(tracker=tracker, resolver=resolver)
    assembly = cm.Assembly()

    first = enricher.enrich('42', assembly)
    second = enricher.enrich('42', assembly)

    assert first is second
    assert len(assembly.issues) == 1

    # failed and missing lookups are not repeated either
    assert enricher.enrich('13', assembly) is None
    assert enricher.enrich('13', assembly) is None
    assert enricher.enrich('404', assembly) is None
    assert enricher.enrich('404', assembly) is None

    assert tracker.lookups == {'42': 1, '13': 1, '404': 1}


def test_enrich_logs_lookup_failures(fake_tracker, resolver, caplog):
    tracker = fake_tracker(failing={'13'})
    enricher = examinee.IssueEnricher(tracker=tracker, resolver=resolver)

    with caplog.at_level(logging.WARNING):
        assert enricher.enrich('13', cm.Assembly()) is None

    assert 'Failed to lookup issue 13' in caplog.text


def test_enrich_summary(fake_tracker, make_tracker_issue, resolver):
    issue = make_tracker_issue(
        '5',
        title='broken',
        body='it is broken',
        state='closed',
        created=datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc),
        author=cm.TrackerUser(login='alice', url='https://github.example/alice'),
        closed_by=cm.TrackerUser(login='bob'),
        assignees=[cm.TrackerUser(login='carol'), cm.TrackerUser(login='carol')],
        labels=['bug', 'help wanted'],
    )
    enricher = examinee.IssueEnricher(
        tracker=fake_tracker(issues={'5': issue}),
        resolver=resolver,
    )

    summary = enricher.enrich('5', cm.Assembly())

    assert summary.id == '5'
    assert summary.url == 'https://github.example/org/repo/issues/5'
    assert summary.title == 'broken'
    assert summary.body == 'it is broken'
    assert summary.state == 'closed'
    assert summary.creationTimestamp == '2024-01-02T03:04:05Z'
    assert summary.user.login == 'alice'
    assert summary.user.url == 'https://github.example/alice'
    assert summary.closedBy.login == 'bob'
    assert [a.login for a in summary.assignees] == ['carol']
    assert [label.name for label in summary.labels] == ['bug', 'help wanted']


def test_enrich_tolerates_missing_users(fake_tracker, make_tracker_issue, resolver, caplog):
    issue = make_tracker_issue(
        '6',
        state='closed',
        author=None,
        closed_by=None,
        assignees=None,
    )
    enricher = examinee.IssueEnricher(
        tracker=fake_tracker(issues={'6': issue}),
        resolver=resolver,
    )

    with caplog.at_level(logging.WARNING):
        summary = enricher.enrich('6', cm.Assembly())

    assert summary.user is None
    assert summary.closedBy is None
    assert summary.assignees == []
    assert 'Failed to find closedBy user for issue 6' in caplog.text
    assert 'Failed to find assignees for issue 6' in caplog.text
