"""
REST routers.
"""

from rest_api.routers.employees import router as employees_router
from rest_api.routers.messages import router as messages_router
from rest_api.routers.tasks import router as tasks_router

__all__ = ["employees_router", "messages_router", "tasks_router"]
