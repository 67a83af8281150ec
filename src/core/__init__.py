"""Core: dominio, merge JSON, extracción y orquestación."""
