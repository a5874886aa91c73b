"""Repository layer for database operations.

This package centralizes all database access logic. Repositories never
commit; services own the transaction boundaries.

Repositories:
    - BaseRepository: Generic CRUD operations and dialect-aware INSERT
    - BankAccountRepository: Account row locks and latest balance lookups
    - InterestRateRepository: Effective-dated rate period queries
    - CryptoExchangeRepository: Per-symbol balance lookups
    - RoboadvisorRepository: Fund basket and cash movement lookups
    - OwnerSnapshotRepository: One-row-per-owner snapshot upserts
    - CryptoCalculationRepository: Append-only crypto snapshots

Usage:
    >>> from app.repositories import InterestRateRepository
    >>> from app.models.bank_account import BankAccountInterestRate
    >>>
    >>> repo = InterestRateRepository(BankAccountInterestRate, db)
    >>> active = await repo.get_active(account_id, date.today())
"""

from app.repositories.bank_account import BankAccountRepository
from app.repositories.base import BaseRepository
from app.repositories.calculation import CryptoCalculationRepository, OwnerSnapshotRepository
from app.repositories.crypto_exchange import CryptoExchangeRepository
from app.repositories.interest_rate import InterestRateRepository
from app.repositories.roboadvisor import RoboadvisorRepository

__all__ = [
    "BaseRepository",
    "BankAccountRepository",
    "InterestRateRepository",
    "CryptoExchangeRepository",
    "RoboadvisorRepository",
    "OwnerSnapshotRepository",
    "CryptoCalculationRepository",
]
