"""CLI command modules for scaffold-upgrade.

Each command lives in its own module and is registered on the root app in
``scaffold_upgrade/__init__.py``.
"""
