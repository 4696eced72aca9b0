"""
Data access for the REST API and the WebSocket gateway.

Usage:
    from rest_api.repositories import DataStore

    store = DataStore()
    employee = await store.find_employee_by_id(employee_id)
"""

from .store import DataStore

__all__ = ["DataStore"]
