"""
Remote collection API access.

Components:
- client.py: HttpGateway over httpx.AsyncClient
- offline.py: InMemoryGateway emulating the remote store (offline mode, tests)
"""
