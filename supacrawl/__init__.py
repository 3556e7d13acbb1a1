"""Supacrawl: scrape or crawl a site through a remote extraction API and read it aloud."""

__version__ = "0.1.0"
