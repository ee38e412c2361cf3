"""
Tickets Module
==============

Bounded Context for support tickets and their categories.

Responsibilities:
- Ticket CRUD with search, filters, sorting and pagination
- Category listing with ticket counts
- Persistence used by the classification module
"""

__version__ = "1.0.0"
