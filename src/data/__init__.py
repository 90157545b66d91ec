"""Listing configuration data, sample markets and price-feed collaborators."""
