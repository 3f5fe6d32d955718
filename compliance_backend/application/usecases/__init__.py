"""Casos de uso de la capa de aplicación (ver `identification/`)."""
