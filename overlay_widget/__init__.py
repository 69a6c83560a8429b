"""Embeddable gift-card catalog and checkout widget core plus its asset/BFF relay."""

__version__ = "0.1.0"
