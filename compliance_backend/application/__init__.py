"""
===============================================================================
APPLICATION LAYER
===============================================================================

Los casos de uso viven en `usecases/identification/`. Esta capa solo
depende de los puertos del dominio (repositorios, clasificador, cola).
===============================================================================
"""
