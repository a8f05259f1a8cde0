"""Describes the recipe book domain.

Two unrelated halves:

- The recipe book itself. Categories holding dishes, stored per user in a
  hierarchical key-value store. Nothing clever, just CRUD with a mirrored copy
  for older clients (see `repository.MirrorPolicy`).
- The formatter. Free recipe text in, ingredients and steps out. Pure and
  heuristic, it never fails.
"""
