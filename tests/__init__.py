"""
immudb SDK Test Suite.

This package contains:
- unit/: Unit tests (no server, mock stubs)
- integration/: Client-level tests against mocked gRPC stubs
"""
