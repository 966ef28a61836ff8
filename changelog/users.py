# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections.abc
import logging
import re
import threading

import cachetools

import changelog.model as cm

logger = logging.getLogger(__name__)


class UserLookupError(RuntimeError):
    pass


class UserLookup:
    '''
    base-class for backing stores of `UserResolver` (e.g. the users known to a GitHub instance).

    Implementations should return None if no matching user exists, and raise `UserLookupError`
    upon any other failure.
    '''
    def user_by_email(self, email: str) -> cm.TrackerUser | None:
        raise NotImplementedError

    def user_by_login(self, login: str) -> cm.TrackerUser | None:
        raise NotImplementedError

    def contributors(self) -> collections.abc.Iterable[cm.TrackerUser]:
        raise NotImplementedError


def _normalise_name(name: str | None) -> str:
    if not name:
        return ''
    return re.sub(r'[^0-9a-z]', '', name.casefold())


def _unbounded_cache() -> cachetools.Cache:
    return cachetools.Cache(maxsize=float('inf'))


class UserResolver:
    '''
    resolves raw user identities (from git commits or issue trackers) to canonical users.

    Resolution results (including negative ones) are cached per raw identity, so the backing
    `UserLookup` is queried at most once per identity for the lifetime of a resolver instance.
    Users resolving to the same canonical identity (see `UserDetails.dedup_key`) are returned
    as the same object.
    '''
    def __init__(
        self,
        lookup: UserLookup | None=None,
        cache: cachetools.Cache | None=None,
    ):
        self.lookup = lookup
        self._cache = cache if cache is not None else _unbounded_cache()
        self._canonical_users: dict[str, cm.UserDetails] = {}
        self._contributors_list: list[cm.TrackerUser] | None = None
        self._lock = threading.RLock()

    def resolve(self, identity: cm.GitIdentity) -> cm.UserDetails | None:
        '''
        returns the canonical user for the given git identity, or None if no matching user
        is known. Callers should fall back to displaying the raw identity in the latter case.
        '''
        if not identity:
            return None

        return self._cached(
            key=('git', identity.name, (identity.email or '').lower()),
            resolve=lambda: self._resolve_git_identity(identity),
        )

    def resolve_tracker_user(self, user: cm.TrackerUser) -> cm.UserDetails | None:
        if not user or not user.login:
            return None

        return self._cached(
            key=('tracker', user.login),
            resolve=lambda: self._resolve_tracker_user(user),
        )

    def resolve_all(
        self,
        users: collections.abc.Iterable[cm.TrackerUser],
    ) -> list[cm.UserDetails]:
        resolved = []
        for user in users:
            if (details := self.resolve_tracker_user(user)) and details not in resolved:
                resolved.append(details)
        return resolved

    def _cached(self, key: tuple, resolve) -> cm.UserDetails | None:
        with self._lock:
            if key in self._cache:
                return self._cache[key]

            try:
                user = resolve()
            except Exception as e:
                logger.warning(f'failed to resolve user {key[1:]}: {e}')
                user = None

            if user:
                user = self._canonical(user)

            self._cache[key] = user
            return user

    def _canonical(self, user: cm.UserDetails) -> cm.UserDetails:
        if not (key := user.dedup_key):
            return user
        if (known := self._canonical_users.get(key)):
            return known
        self._canonical_users[key] = user
        return user

    def _resolve_git_identity(self, identity: cm.GitIdentity) -> cm.UserDetails | None:
        if not self.lookup:
            return None

        if identity.email and (user := self.lookup.user_by_email(identity.email)):
            logger.debug(f'resolved {identity} by email to {user.login}')
            return _user_details(user, email=identity.email, name=identity.name)

        if (user := self._match_contributor(identity.name)):
            logger.debug(f'resolved {identity} by name to {user.login}')
            return _user_details(user, email=identity.email, name=identity.name)

        logger.debug(f'could not resolve {identity}')
        return None

    def _match_contributor(self, name: str) -> cm.TrackerUser | None:
        if not (normalised := _normalise_name(name)):
            return None

        for contributor in self._contributors():
            if normalised in (
                _normalise_name(contributor.name),
                _normalise_name(contributor.login),
            ):
                return contributor

        return None

    def _contributors(self) -> list[cm.TrackerUser]:
        # retrieved at most once (also if retrieval fails); callers hold self._lock
        if self._contributors_list is None:
            self._contributors_list = []
            self._contributors_list = list(self.lookup.contributors())
        return self._contributors_list

    def _resolve_tracker_user(self, user: cm.TrackerUser) -> cm.UserDetails:
        if self.lookup and not (user.name and user.email):
            if (known := self.lookup.user_by_login(user.login)):
                return _user_details(known, email=user.email, name=user.name)

        return _user_details(user, email=user.email, name=user.name)


def _user_details(
    user: cm.TrackerUser,
    email: str | None,
    name: str | None,
) -> cm.UserDetails:
    return cm.UserDetails(
        login=user.login,
        name=user.name or name,
        email=user.email or email,
        url=user.url,
        avatarUrl=user.avatar_url,
    )
