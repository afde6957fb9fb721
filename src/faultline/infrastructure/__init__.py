"""Infrastructure layer — storage, transport, and exception parsing adapters.

Each adapter satisfies a small protocol the services and plugins depend on,
so tests and host applications can swap in their own implementations.
"""
