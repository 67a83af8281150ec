"""CLI de sitepull (Typer + Rich)."""
