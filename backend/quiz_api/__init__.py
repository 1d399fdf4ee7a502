"""Application package for the quiz platform backend.

This package exposes the service, repository and model modules used by
the FastAPI application built in `quiz_api.main`. Individual modules
contain the concrete implementations and documentation.
"""
