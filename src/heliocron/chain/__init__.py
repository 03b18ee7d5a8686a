"""
Chain - On-chain interaction layer for heliocron.

Provides the JSON-RPC client, ABI handling and the transaction value types
used by the submission layer.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
