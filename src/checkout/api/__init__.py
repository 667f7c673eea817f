"""Checkout domain API package.

Routers live in their own modules and are imported one by one by ``app.py``;
this package does not re-export them so the domain can traverse it on
``init()``.
"""
