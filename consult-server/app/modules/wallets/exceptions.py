"""Wallet ledger specific exceptions."""


class WalletError(Exception):
    """Base class for wallet ledger errors."""


class InsufficientFundsError(WalletError):
    """Raised when a debit exceeds the balance at the instant of the debit."""

    def __init__(self, account_id: str, amount_cents: int, balance_cents: int) -> None:
        super().__init__(
            f"Insufficient balance for {account_id}: need {amount_cents}, have {balance_cents}"
        )
        self.account_id = account_id
        self.amount_cents = amount_cents
        self.balance_cents = balance_cents

    @property
    def shortfall_cents(self) -> int:
        return max(0, self.amount_cents - self.balance_cents)


class LedgerWriteError(WalletError):
    """Raised when the store rejects or fails a debit/credit write."""
