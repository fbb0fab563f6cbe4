"""Value accounting: funds in custody, recipient balances, protocol fees."""

import logging
from typing import Dict, Optional

from zkmix.core.journal import UndoJournal
from zkmix.exceptions import InsufficientFundsError

logger = logging.getLogger(__name__)


class Ledger:
    """
    Simulated value ledger of the mixer.

    ``held`` is value deposited and not yet withdrawn. Withdrawals move
    ``amount - fee`` out of ``held`` to the recipient's balance and ``fee`` to
    ``protocol_fees``. Every mutation is journaled so a failed operation
    leaves all balances unchanged.
    """

    def __init__(self, journal: Optional[UndoJournal] = None):
        self.held = 0
        self.protocol_fees = 0
        self.balances: Dict[str, int] = {}
        self._journal = journal or UndoJournal()

    def _set_balance(self, account: str, value: int) -> None:
        previous = self.balances.get(account)
        self.balances[account] = value
        if previous is None:
            self._journal.record(lambda: self.balances.pop(account, None))
        else:
            self._journal.record(lambda: self.balances.__setitem__(account, previous))

    def _set_totals(self, held: int, protocol_fees: int) -> None:
        previous = (self.held, self.protocol_fees)
        self.held, self.protocol_fees = held, protocol_fees

        def undo() -> None:
            self.held, self.protocol_fees = previous

        self._journal.record(undo)

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def receive(self, amount: int) -> None:
        """Take a deposit into custody."""
        self._set_totals(self.held + amount, self.protocol_fees)

    def pay_out(self, recipient: str, amount: int, fee: int) -> None:
        """
        Release ``amount`` from custody: ``amount - fee`` to the recipient.

        Raises:
            InsufficientFundsError: If custody holds less than ``amount``
        """
        if amount > self.held:
            raise InsufficientFundsError(f"Insufficient balance: {self.held} held, {amount} requested")
        self._set_totals(self.held - amount, self.protocol_fees + fee)
        self._set_balance(recipient, self.balance_of(recipient) + amount - fee)

    def sweep_fees(self, recipient: str) -> int:
        """Transfer accrued fees to ``recipient`` and return the amount."""
        amount = self.protocol_fees
        if amount:
            self._set_totals(self.held, 0)
            self._set_balance(recipient, self.balance_of(recipient) + amount)
        return amount

    def sweep_all(self, recipient: str) -> int:
        """Transfer custody and fees to ``recipient`` and return the amount."""
        amount = self.held + self.protocol_fees
        if amount:
            self._set_totals(0, 0)
            self._set_balance(recipient, self.balance_of(recipient) + amount)
        logger.warning("Swept %d wei to %s", amount, recipient)
        return amount

    @property
    def total(self) -> int:
        """All value the mixer controls."""
        return self.held + self.protocol_fees
