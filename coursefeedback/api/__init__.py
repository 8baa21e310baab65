"""
HTTP API for the course feedback service.
"""
