"""
Domain layer for the procurement core.
Contains business logic, factories, policies and state machines
separated from data persistence concerns.
"""
