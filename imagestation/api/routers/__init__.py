"""
API route handlers, one router per feature plus health, downloads and pages.
"""
