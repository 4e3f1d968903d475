"""Infrastructure Layer — record store clients, run ledger, and cross-cutting concerns.

Invariants:
    - Infrastructure depends on core/ types, never on services/ or api/
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients: gateways never see raw HTTP failures
"""
