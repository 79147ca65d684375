"""
Version 1 of the API.  ``router`` bundles all v1 endpoints.
"""
