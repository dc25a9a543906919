"""
TarkovGuide - Discord bot for Escape from Tarkov item lookups and AI quest guides.

This package queries the tarkov.dev GraphQL API for item and quest data and
enriches quests with LLM-generated, objective-by-objective guidance plus
relevant images scraped from the quest's wiki page.
"""

__version__ = "0.1.0"
