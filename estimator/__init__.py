"""
Cost Estimator API.

Prices project tasks by complexity and size, keeps project totals consistent
with the global settings, and drafts tasks with an LLM.
"""

__version__ = "1.0.0"
