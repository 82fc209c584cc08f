"""
Domain Layer

Business vocabulary of the rental core, separated from persistence
concerns.

Structure:
- value_objects/: Immutable value types without identity
"""
