"""
Todo API package.

Layers, leaf first:
- models: domain enums, parsers and record types
- repositories / db: storage contract with in-memory and SQLite backends
- services: validation and orchestration of the todo use cases
- auth: the ``identifier:secret`` Authorization gate
- main / routers: FastAPI wiring (``todo_api.main:app``)
"""

__version__ = "0.1.0"
