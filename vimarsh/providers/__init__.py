"""
Adapters for external systems: identity provider, mail and image hosting.
"""
