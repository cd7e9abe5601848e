"""Domain layer for walletledger application."""

_SERVICES = {
    "FeeCatalog": "walletledger.domain.fee_catalog",
    "LedgerJournal": "walletledger.domain.ledger",
    "ReferenceGenerator": "walletledger.domain.references",
    "RevenueRecognizer": "walletledger.domain.revenue",
    "SettlementBatcher": "walletledger.domain.settlement",
    "TransactionPoster": "walletledger.domain.transaction",
    "TransferService": "walletledger.domain.transfer",
    "WalletGuard": "walletledger.domain.wallet_guard",
    "WalletService": "walletledger.domain.wallet",
    "compute_fee": "walletledger.domain.fee_calculator",
}

__all__ = list(_SERVICES)


# Services import the database layer, which imports domain entities, so
# they are resolved lazily.
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
