"""
Adapters — thin wrappers over the Qixin REST API.

- signature: per-request auth headers
- qixin: signed, retried dispatch returning QueryResult | QueryError
"""
