"""Proceso worker: jobs RQ de identificación + HTTP operativo (health/metrics)."""
