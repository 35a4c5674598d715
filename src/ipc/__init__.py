"""
IPC Package

The access facade and the line-based transport that carries its
requests between the UI process and this one.
"""

from src.ipc.facade import AccessFacade
from src.ipc.transport import serve, serve_stdio

__all__ = [
    "AccessFacade",
    "serve",
    "serve_stdio",
]
