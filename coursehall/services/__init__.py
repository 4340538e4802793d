"""
Coursehall Backend - Services Module

Business logic layer. Import service modules directly, e.g.
``from coursehall.services import view_service``.
"""
