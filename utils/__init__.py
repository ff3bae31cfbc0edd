"""
Shared helpers: logging setup, URL validation, HTTP client factory
"""
