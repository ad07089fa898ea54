"""
Integer-only Python kernels.

These modules are:
- deterministic (no floating point),
- easy to audit (explicit intermediate variables),
- small surface-area (pure functions returning frozen results).
"""
