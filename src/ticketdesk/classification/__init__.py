"""
Classification Module
=====================

Bounded Context for automatic ticket classification.

Responsibilities:
- Decide whether to call the LLM for a classification at all
- Enforce the classification call budget (fixed-window rate limit)
- Validate LLM answers and fall back to a local guess on any soft failure
- Apply results to tickets without overwriting manual category changes
"""

__version__ = "1.0.0"
