"""
AeroTrace Tests

TEST AXIOMS:
=============
1. Determinism: fixed clock + same history = identical findings
2. Bad history is reported, never rejected
3. Explicit failure: no silent fallbacks
"""
