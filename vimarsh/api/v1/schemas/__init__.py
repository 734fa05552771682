"""
Request and response schemas for API v1.
"""
