"""Business logic layer for files app.

This package contains all business logic for file operations:
- Upload and delete sagas across the database and object storage
- Quota admission and usage reporting
- Listing, filtering and search

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
