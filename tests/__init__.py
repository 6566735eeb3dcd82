"""
srclient Test Suite.

This package contains:
- unit/: Unit tests (no network; catalog, cache, client facade, emulator routes)
- integration/: SDK client against the emulator over an in-process ASGI transport
"""
