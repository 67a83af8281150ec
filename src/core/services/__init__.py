"""Servicios del Core (extracción, orquestación, empaquetado)."""
