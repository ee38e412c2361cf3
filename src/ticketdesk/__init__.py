"""
Ticketdesk
==========

Support ticket tracker with LLM-assisted auto-classification.
"""

__version__ = "1.0.0"
