"""SQLAlchemy ORM models.

Importing this package registers every mapped class, which string-based
relationships and ``Base.metadata.create_all`` rely on.
"""

from app.models.bank_account import BankAccount, BankAccountBalance, BankAccountInterestRate
from app.models.calculation import (
    BankAccountCalculation,
    CryptoExchangeCalculation,
    RoboadvisorFundCalculation,
)
from app.models.crypto_exchange import CryptoExchange, CryptoExchangeBalance
from app.models.roboadvisor import (
    Roboadvisor,
    RoboadvisorBalance,
    RoboadvisorBalanceType,
    RoboadvisorFund,
)

__all__ = [
    "BankAccount",
    "BankAccountBalance",
    "BankAccountInterestRate",
    "BankAccountCalculation",
    "CryptoExchange",
    "CryptoExchangeBalance",
    "CryptoExchangeCalculation",
    "Roboadvisor",
    "RoboadvisorBalance",
    "RoboadvisorBalanceType",
    "RoboadvisorFund",
    "RoboadvisorFundCalculation",
]
