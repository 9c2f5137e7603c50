"""Infrastructure layer for files app.

This package contains integrations with external systems:
- S3-compatible object storage backend with retry policy
- Filename sanitizing, content type validation and object keys

Keep infrastructure concerns separate from business logic.
"""
