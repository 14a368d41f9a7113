"""
Notify app.

Dispatches account emails (verification, failure alerts) through pluggable
drivers and keeps a dispatch log used to suppress duplicate sends.
"""
