"""
Audit app for the realty back office.

Records who did what from the admin API: imports started and undone,
soft deletes and restores of directory entries and projects.
"""
