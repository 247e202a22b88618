"""
Flight booking service with demand-based surge pricing and a wallet ledger
"""
__version__ = "1.0.0"
