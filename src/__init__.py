"""
AccTrack - Source Package

The data-access layer of the AccTrack desktop bookkeeping application.
It persists business records to a local file-backed store and exposes
them to the UI process as named request/response endpoints.

DESIGN PRINCIPLES:
1. The UI never touches rows directly, only the access facade
2. Failures cross the boundary as result objects, never as faults
3. Storage layer is swappable
4. Every mutation is auditable
"""

__version__ = "1.0.0"
__author__ = "AccTrack Team"
