"""Concrete adapters for every interface in :mod:`docqa.interfaces`."""
