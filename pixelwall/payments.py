"""
payments.py - In-Memory Cash Book

Reference PaymentProcessor for the wall. Holds integer balances of a single
currency per wallet and moves funds atomically between wallets.

Key responsibilities:
    - Implements the PaymentProcessor protocol (charge)
    - Executes transfers atomically: validated first, applied second
    - Idempotent on the transfer reference: a reference is never applied twice
    - Always logs: every applied transfer is recorded in transfer_log
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set

from .core import InsufficientFunds, PaymentError, WalletNotRegistered, WallError


# Reserved wallet for issuance. Exempt from balance validation.
SYSTEM_WALLET = "system"


class ExecuteResult(Enum):
    """
    Outcome of a transfer execution attempt.

    APPLIED: Transfer was validated and applied.
    ALREADY_APPLIED: A transfer with the same reference was applied before.
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"


@dataclass(frozen=True, slots=True)
class Transfer:
    """
    A single movement of funds between two wallets.

    Attributes:
        amount: Minor units to move (positive)
        source: Wallet debited
        dest: Wallet credited
        reference: Caller-chosen id, unique per business transfer
    """
    amount: int
    source: str
    dest: str
    reference: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Transfer source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Transfer dest cannot be empty")
        if not self.reference or not self.reference.strip():
            raise ValueError("Transfer reference cannot be empty")
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError(f"Transfer amount must be int, got {type(self.amount)}")
        if self.amount <= 0:
            raise ValueError(f"Transfer amount must be positive, got {self.amount}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Transfer({self.amount}: {self.source}→{self.dest}, ref={self.reference})"


class CashBook:
    """
    Single-currency wallet balances with atomic transfers.

    Thread Safety:
        Not thread-safe on its own. A Wall calls charge() while holding its
        lock; share one CashBook between walls only under external locking.

    Example:
        book = CashBook("SUI", verbose=False)
        book.register_wallet("alice")
        book.register_wallet("wall_owner")
        book.execute(Transfer(1_000_000_000, SYSTEM_WALLET, "alice", "funding"))
        book.charge("alice", "wall_owner", 500_000_000, "purchase:0")
    """

    def __init__(self, currency: str = "MIST", verbose: bool = True, test_mode: bool = False):
        self.currency = currency
        self.balances: Dict[str, int] = {SYSTEM_WALLET: 0}
        self.registered_wallets: Set[str] = {SYSTEM_WALLET}
        self.seen_references: Set[str] = set()
        self.transfer_log: List[Transfer] = []
        self.verbose = verbose
        self._test_mode = test_mode

    # ========================================================================
    # READ METHODS
    # ========================================================================

    def get_balance(self, wallet_id: str) -> int:
        """
        Balance of a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        return self.balances[wallet_id]

    def is_registered(self, wallet_id: str) -> bool:
        return wallet_id in self.registered_wallets

    def total_supply(self) -> int:
        """Sum of all balances, system wallet included. Constant under transfers."""
        return sum(self.balances[w] for w in sorted(self.registered_wallets))

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Register a new wallet with a zero balance.

        Raises:
            ValueError: If wallet is already registered
        """
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = 0
        if self.verbose:
            print(f"📝 Registered wallet: {wallet_id} [{self.currency}]")
        return wallet_id

    def set_balance(self, wallet_id: str, amount: int) -> None:
        """
        Set a wallet's balance directly.

        WARNING: bypasses double-entry accounting; only available in test mode.

        Raises:
            WallError: If called when test_mode is False
        """
        if not self._test_mode:
            raise WallError(
                "set_balance() is disabled in production mode. "
                "Fund wallets with a Transfer from SYSTEM_WALLET. "
                "Set test_mode=True when creating CashBook for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        self.balances[wallet_id] = amount

    # ========================================================================
    # TRANSFERS (Mutating)
    # ========================================================================

    def _validate(self, transfer: Transfer) -> None:
        """Raise a PaymentError if the transfer cannot be applied in full."""
        if transfer.source not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {transfer.source} not registered")
        if transfer.dest not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {transfer.dest} not registered")
        # SYSTEM_WALLET may go negative (issuance)
        if transfer.source != SYSTEM_WALLET:
            available = self.balances[transfer.source]
            if available < transfer.amount:
                raise InsufficientFunds(
                    f"{transfer.source}: balance {available} < {transfer.amount} {self.currency}"
                )

    def execute(self, transfer: Transfer) -> ExecuteResult:
        """
        Apply a transfer atomically.

        Returns:
            ExecuteResult.APPLIED if applied
            ExecuteResult.ALREADY_APPLIED if the reference was seen before

        Raises:
            WalletNotRegistered: If either wallet is unknown
            InsufficientFunds: If the source cannot cover the amount
        """
        if transfer.reference in self.seen_references:
            if self.verbose:
                print(f"⚠️  ALREADY_APPLIED: reference={transfer.reference}")
            return ExecuteResult.ALREADY_APPLIED

        try:
            self._validate(transfer)
        except WallError as e:
            if self.verbose:
                print(f"✗ REJECTED: {e}")
            raise

        self.balances[transfer.source] -= transfer.amount
        self.balances[transfer.dest] += transfer.amount
        self.transfer_log.append(transfer)
        self.seen_references.add(transfer.reference)

        if self.verbose:
            print(f"✓ APPLIED: {transfer!r}")
        return ExecuteResult.APPLIED

    def charge(self, payer: str, payee: str, amount: int, reference: str) -> None:
        """
        PaymentProcessor implementation: move exactly amount from payer to payee.

        A payer paying itself moves nothing but must still be able to cover
        the amount.

        Raises:
            WalletNotRegistered: If either wallet is unknown
            InsufficientFunds: If the payer cannot cover the amount
            PaymentError: If the reference was already used, so no funds moved
        """
        if payer == payee:
            available = self.get_balance(payer)
            if payer != SYSTEM_WALLET and available < amount:
                raise InsufficientFunds(
                    f"{payer}: balance {available} < {amount} {self.currency}"
                )
            return
        result = self.execute(Transfer(amount, payer, payee, reference))
        if result == ExecuteResult.ALREADY_APPLIED:
            raise PaymentError(f"Charge reference {reference} already used")

    def clone(self, verbose: Optional[bool] = None) -> CashBook:
        """Independent copy of balances, registrations and log."""
        cloned = CashBook(
            self.currency,
            verbose=self.verbose if verbose is None else verbose,
            test_mode=self._test_mode,
        )
        cloned.balances = dict(self.balances)
        cloned.registered_wallets = set(self.registered_wallets)
        cloned.seen_references = set(self.seen_references)
        cloned.transfer_log = list(self.transfer_log)
        return cloned
