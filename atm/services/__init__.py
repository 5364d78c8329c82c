"""
ATM services: credentials, sessions, authentication, accounts and the
transaction engine.
"""
