"""Domain layer — node model, events, errors, and collaborator contracts.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
