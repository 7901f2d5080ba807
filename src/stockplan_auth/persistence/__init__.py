"""Persistence implementations for stockplan_auth.

This package contains implementations of the repository interface
defined in stockplan_auth.repositories.

Structure:
    persistence/
    ├── sqlalchemy/     # SQLAlchemy/SQL database implementation
    └── memory/         # In-process implementation for tests and demos

Usage:
    from stockplan_auth.persistence.sqlalchemy import (
        AuthBase,
        AuthRepositorySQLAlchemy,
    )
"""
