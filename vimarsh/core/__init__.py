"""
Core infrastructure: configuration, errors, security, validation and the DI container.
"""
