"""Identity context: which account's rows are currently visible."""

from __future__ import annotations

import hmac
import logging
from collections.abc import Callable, Iterable

from sentence_quiz.exceptions import AuthenticationError
from sentence_quiz.models import Account

logger = logging.getLogger(__name__)

OwnerListener = Callable[["str | None"], None]


class IdentityContext:
    """Holds the active account and notifies listeners when it changes.

    The owner key is the account id. Listeners are called with the new
    owner key (``None`` after logout) and run in subscription order; an
    exception raised by a listener propagates to the caller of the
    method that changed the identity.
    """

    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self._accounts = {a.id: a for a in accounts}
        self._current: Account | None = None
        self._listeners: list[OwnerListener] = []

    @property
    def current(self) -> Account | None:
        return self._current

    @property
    def owner(self) -> str | None:
        return self._current.id if self._current else None

    def subscribe(self, listener: OwnerListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: OwnerListener) -> None:
        self._listeners.remove(listener)

    def login(self, user_id: str, password: str) -> Account:
        """Activate a configured account after checking its password."""
        account = self._accounts.get(user_id.strip())
        if account is None or not hmac.compare_digest(
            account.password.encode(), password.encode()
        ):
            raise AuthenticationError("Invalid user id or password")
        self._set(account)
        return account

    def logout(self) -> None:
        self._set(None)

    def switch(self, owner: str | None) -> None:
        """Activate an owner key directly, bypassing the password check."""
        if not owner:
            self._set(None)
            return
        account = self._accounts.get(owner) or Account(owner, "", owner)
        self._set(account)

    def _set(self, account: Account | None) -> None:
        self._current = account
        logger.debug("Active owner is now %r", self.owner)
        for listener in list(self._listeners):
            listener(self.owner)
