"""API layer package exposing the attribution service application factory."""

from .application import create_api_application

__all__ = ["create_api_application"]
