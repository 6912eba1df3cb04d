# lorerank/cli/commands/__init__.py
"""CLI command implementations (imported lazily by lorerank.cli.cli)."""
