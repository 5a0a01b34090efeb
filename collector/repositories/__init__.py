"""
Repositories.

Data access layer.
"""
