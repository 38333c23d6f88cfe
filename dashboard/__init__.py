"""
dashboard — routes mounted under ``/dashboard``; all of them sit behind
the auth gate.
"""
