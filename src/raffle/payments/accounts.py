from __future__ import annotations

from typing import Protocol

import structlog

log = structlog.get_logger()


class TransferError(Exception):
    """
    Funds could not be moved. Nothing was debited or credited.
    """


class PayoutChannel(Protocol):
    def transfer(self, *, recipient: str, amount: int) -> None:
        ...


class InMemoryAccounts:
    """
    Balances per identity, used as the raffle's payout channel and as the
    entrants' wallets in local runs.

    Accounts marked unreachable reject incoming transfers, which is how a
    failed payout is simulated.
    """

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._unreachable: set[str] = set()

    def balance_of(self, identity: str) -> int:
        return self._balances.get(identity, 0)

    def fund(self, identity: str, amount: int) -> int:
        self._validate_amount(amount)
        self._balances[identity] = self.balance_of(identity) + amount
        return self._balances[identity]

    def credit(self, identity: str, amount: int) -> None:
        self._validate_amount(amount)
        self._balances[identity] = self.balance_of(identity) + amount

    def debit(self, identity: str, amount: int) -> None:
        self._validate_amount(amount)
        balance = self.balance_of(identity)
        if balance < amount:
            raise TransferError(f"insufficient funds: {identity} has {balance}, needs {amount}")
        self._balances[identity] = balance - amount

    def transfer(self, *, recipient: str, amount: int) -> None:
        if recipient in self._unreachable:
            raise TransferError(f"recipient {recipient} is unreachable")
        self.credit(recipient, amount)
        log.info("accounts.transfer", recipient=recipient, amount=amount)

    def mark_unreachable(self, identity: str) -> None:
        self._unreachable.add(identity)

    def mark_reachable(self, identity: str) -> None:
        self._unreachable.discard(identity)

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be >= 0")
