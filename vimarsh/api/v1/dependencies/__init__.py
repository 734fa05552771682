"""
FastAPI dependencies for API v1.
"""
