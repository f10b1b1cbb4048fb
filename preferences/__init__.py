"""
Table Preferences App

Per-user dashboard view settings (visible columns, sorting, saved filters)
scoped to a station, form type or single form, with inheritance from the
broader scopes.
"""
