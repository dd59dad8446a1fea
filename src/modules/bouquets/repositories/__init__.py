"""Bouquet repositories package."""

from modules.bouquets.repositories.django_repository import BouquetDjangoRepository
from modules.bouquets.repositories.interfaces import IBouquetRepository

__all__ = ["BouquetDjangoRepository", "IBouquetRepository"]
