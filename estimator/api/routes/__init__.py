"""
Estimator API routers.
"""
