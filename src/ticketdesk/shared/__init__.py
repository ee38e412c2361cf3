"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (Tickets and
Classification): structured logging and HTTP middleware.

DO NOT add business logic from Tickets or Classification to shared kernel.
"""
