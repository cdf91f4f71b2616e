"""persona-scraper: collect a persona's public social media content for dataset building."""

from persona_scraper.config import Config
from persona_scraper.models import PersonaBundle, Platform, PlatformError
from persona_scraper.orchestrator import PersonaScraper

__version__ = "0.1.0"

__all__ = ["Config", "PersonaBundle", "PersonaScraper", "Platform", "PlatformError"]
