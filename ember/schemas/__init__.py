"""Pydantic Schemas — request/response models for the API boundary.

Invariants:
    - Request models validate shape; domain rules stay in core/ and the engines
"""
