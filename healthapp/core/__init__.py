"""
Shared security, token, middleware and startup utilities.
"""
