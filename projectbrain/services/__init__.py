"""
Domain services.

Each module holds the business rules for one concern and talks to the
database through the repositories in ``projectbrain.core.database``.
"""
