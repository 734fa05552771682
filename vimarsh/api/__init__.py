"""
HTTP API packages.
"""
