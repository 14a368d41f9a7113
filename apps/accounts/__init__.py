"""
Accounts app.

Owns the signup rules and the account store:
- validation.py: structural/semantic checks on a signup request
- services.py: account creation (single atomic write) and deactivation
- models.py: the Account record
"""
