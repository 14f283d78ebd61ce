"""Service layer — reconstruction, serialization, and execution of trees.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
