"""
Estimator services: pricing, settings, repository, task generation, export.
"""
