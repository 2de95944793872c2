"""Domain layer — capabilities, rules, fields, content types, permissions.

This layer depends only on the standard library.
It must never import from services, infrastructure, commands, or config.
"""
