"""
ledger — in-process host ledger for applications (devnet and tests).

Public surface:
    Ledger, LedgerParams     (ledger.chain)
    Application, abimethod   (ledger.abi)
    AppHost                  (ledger.host)
    PaymentTxn, Payment      (ledger.txns)
    StorageCostModel         (ledger.storage)
    errors                   (ledger.errors)
"""

from ledger.abi import Application, abimethod
from ledger.accounts import ZERO_ADDRESS, Account, application_address, random_address
from ledger.chain import Ledger, LedgerParams
from ledger.errors import LedgerError, Revert, require
from ledger.host import AppHost
from ledger.storage import StorageCostModel
from ledger.txns import Payment, PaymentTxn

__all__ = [
    "Account",
    "AppHost",
    "Application",
    "Ledger",
    "LedgerError",
    "LedgerParams",
    "Payment",
    "PaymentTxn",
    "Revert",
    "StorageCostModel",
    "ZERO_ADDRESS",
    "abimethod",
    "application_address",
    "random_address",
    "require",
]
