"""
Backend package for the post and upload API.

This package provides a FastAPI application with storage and database
abstractions for posts, their images, tags and detected resources, plus
pre-signed upload URLs for direct-to-storage uploads.
"""
