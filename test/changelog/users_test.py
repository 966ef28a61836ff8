# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging

import changelog.model as cm
import changelog.users as examinee


jane = cm.TrackerUser(
    login='jdoe',
    name='Jane Doe',
    email='jane@example.org',
    url='https://github.example/jdoe',
    avatar_url='https://avatars.example/jdoe',
)
max_ = cm.TrackerUser(
    login='max-mustermann',
    name='Max Mustermann',
)


def test_resolve_without_lookup():
    resolver = examinee.UserResolver()

    assert resolver.resolve(cm.GitIdentity(name='Jane Doe', email='jane@example.org')) is None
    assert resolver.resolve(None) is None


def test_resolve_by_email(fake_user_lookup):
    lookup = fake_user_lookup(users=[jane])
    resolver = examinee.UserResolver(lookup=lookup)

    user = resolver.resolve(cm.GitIdentity(name='jane', email='Jane@Example.org'))

    assert user.login == 'jdoe'
    assert user.name == 'Jane Doe'
    assert user.email == 'jane@example.org'
    assert user.url == 'https://github.example/jdoe'
    assert user.avatarUrl == 'https://avatars.example/jdoe'


def test_resolve_by_contributor_name(fake_user_lookup):
    lookup = fake_user_lookup(contributors=[jane, max_])
    resolver = examinee.UserResolver(lookup=lookup)

    user = resolver.resolve(cm.GitIdentity(name='max mustermann', email='max@example.org'))

    assert user.login == 'max-mustermann'
    # email is taken from git identity, as it is unknown to the lookup
    assert user.email == 'max@example.org'

    # matching by login also works
    user = resolver.resolve(cm.GitIdentity(name='JDoe', email='other@example.org'))
    assert user.login == 'jdoe'

    # contributors are only retrieved once
    assert lookup.calls['contributors'] == 1


def test_resolve_caches_results(fake_user_lookup):
    lookup = fake_user_lookup(users=[jane])
    resolver = examinee.UserResolver(lookup=lookup)
    identity = cm.GitIdentity(name='Jane Doe', email='jane@example.org')
    unknown = cm.GitIdentity(name='Nobody', email='nobody@example.org')

    first = resolver.resolve(identity)
    second = resolver.resolve(identity)

    assert first is second

    assert resolver.resolve(unknown) is None
    assert resolver.resolve(unknown) is None

    # one lookup per distinct identity (also for unresolvable ones)
    assert lookup.calls['user_by_email'] == 2


def test_resolve_deduplicates_canonical_users(fake_user_lookup):
    lookup = fake_user_lookup(users=[jane])
    resolver = examinee.UserResolver(lookup=lookup)

    by_email = resolver.resolve(cm.GitIdentity(name='Jane Doe', email='jane@example.org'))
    by_other_name = resolver.resolve(cm.GitIdentity(name='J. Doe', email='JANE@example.org'))
    by_login = resolver.resolve_tracker_user(cm.TrackerUser(login='jdoe'))

    assert by_email is by_other_name
    assert by_email is by_login


def test_resolve_lookup_errors_are_not_fatal(fake_user_lookup, caplog):
    lookup = fake_user_lookup(users=[jane], failing_emails={'jane@example.org'})
    resolver = examinee.UserResolver(lookup=lookup)
    identity = cm.GitIdentity(name='Jane', email='jane@example.org')

    with caplog.at_level(logging.WARNING):
        assert resolver.resolve(identity) is None

    assert 'failed to resolve user' in caplog.text

    # errors are cached as well
    assert resolver.resolve(identity) is None
    assert lookup.calls['user_by_email'] == 1


def test_resolve_tracker_user_completes_details(fake_user_lookup):
    lookup = fake_user_lookup(users=[jane])
    resolver = examinee.UserResolver(lookup=lookup)

    user = resolver.resolve_tracker_user(cm.TrackerUser(login='jdoe'))

    assert user.name == 'Jane Doe'
    assert user.email == 'jane@example.org'

    # unknown logins are kept as they are
    user = resolver.resolve_tracker_user(cm.TrackerUser(login='ghost'))
    assert user.login == 'ghost'
    assert user.name is None


def test_resolve_all():
    resolver = examinee.UserResolver()

    users = resolver.resolve_all([
        cm.TrackerUser(login='a'),
        cm.TrackerUser(login='b'),
        cm.TrackerUser(login='a'),
    ])

    assert [u.login for u in users] == ['a', 'b']
