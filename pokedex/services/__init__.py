"""Services Layer — orchestrates gateways around the pure core rules.

Invariants:
    - Services receive gateways by injection (Protocols from core/)
    - Pipeline errors propagate unchanged; the only absorbed failure is translation
"""
