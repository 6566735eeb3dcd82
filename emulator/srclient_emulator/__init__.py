"""
srclient_emulator - In-process schema registry emulator.

Serves a SchemaCatalog over the registry REST protocol so clients can be
exercised without a real registry.

Usage:
    python -m srclient_emulator.main

Or:
    uvicorn srclient_emulator.app:app --port 8081
"""

from .app import create_app
from .config import Settings

__all__ = ["create_app", "Settings"]
