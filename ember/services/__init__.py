"""Services Layer — relationship engine, pin engine, accounts.

Invariants:
    - Every service takes its AsyncSession through the constructor (no globals)
    - Services are constructed per request and hold no state between calls

Design Decisions:
    - One file per engine for locality; pure rules live in core/
"""
