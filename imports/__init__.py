"""
Imports app for the realty back office.

This app handles CSV bulk imports of projects, developers and banks, the
import job ledger, and undo of completed imports.
"""
