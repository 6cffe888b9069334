"""
Liveness/readiness endpoint.
"""
