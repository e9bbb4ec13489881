"""Modelos y errores del dominio."""
