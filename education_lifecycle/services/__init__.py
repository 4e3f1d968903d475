"""Services Layer — convergence sweep orchestration and trigger host.

Invariants:
    - Services do the IO around the pure category rules, never the reverse
    - One sweep at a time per process (asyncio.Lock in CategorySweepService)

Design Decisions:
    - Sweep routine decoupled from the recurrence mechanism: cron jobs and the
      manual endpoint call the same coroutine
"""
