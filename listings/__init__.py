"""
Listings app for the realty back office.

This app holds the listing data the admin panel manages: projects and the
developer, bank, city and district directories they reference.
"""
