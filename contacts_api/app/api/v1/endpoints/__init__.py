"""
Endpoint modules for API v1, aggregated in ``router.py``.
"""
