"""
Per-domain repository modules for database access.

Services go through these for row lookups and multi-table writes; simple
attribute updates on loaded rows stay in the services.
"""
