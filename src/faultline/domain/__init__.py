"""Domain layer — events, settings snapshots, and error types.

This layer depends only on stdlib and pydantic.
It must never import from services, plugins, infrastructure, or commands.
"""
