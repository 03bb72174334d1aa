"""
Shared, cross-cutting code for the API.

`core/` holds the building blocks the feature packages lean on: settings,
the DB pool, schema bootstrap and the song info provider client. Song SQL and
business rules live in `songs/`.
"""
