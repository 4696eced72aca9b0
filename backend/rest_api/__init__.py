"""
Taskflow REST API: messages, tasks and employees.

Mounted on the gateway application so REST changes can be pushed to
connected sockets in-process.
"""
