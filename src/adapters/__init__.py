"""Adaptadores de infraestructura (HTTP, filesystem)."""
