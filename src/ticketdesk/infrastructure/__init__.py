"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Database connection management
- External LLM API clients
"""
