"""
receiptnet: off-chain payment receipts settled in batches under one BLS
aggregate signature.
"""

__version__ = "0.1.0"
