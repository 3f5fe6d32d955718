"""Servicio de identificación de requerimientos regulatorios."""
