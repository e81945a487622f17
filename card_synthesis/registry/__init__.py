"""
Static card registry: which cards exist, their fusion category and default
weight.  Loaded from config/cards.toml; holds data only, never behavior.

  registry/models.py    CardSpec pydantic model.
  registry/registry.py  Load, cache, look up and list card specs.
"""
