"""Persistence, text mining and training exports for scraped personas."""

from persona_scraper.dataset.converter import DatasetConverter
from persona_scraper.dataset.organizer import DataOrganizer, sanitize_name

__all__ = ["DataOrganizer", "DatasetConverter", "sanitize_name"]
