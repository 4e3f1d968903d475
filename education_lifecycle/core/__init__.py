"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic given their inputs
      (today's date is always an explicit argument)

Design Decisions:
    - Functional core separated from imperative shell: the sweep service
      does the IO around the category rules, never the other way round
"""
