"""
Taskflow WebSocket Gateway.

Real-time presence and fan-out for owners and employees: one socket per
user at ``/ws``, pairwise chat channels, and routing of message, task and
employee events to whoever is online.
"""
