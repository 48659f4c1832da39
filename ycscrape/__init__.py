"""Listing-page scraper.

This package discovers company profile links on a lazily-loaded listing
page, visits each profile with a headless browser, and streams the
extracted records as typed progress events.
"""
