"""Shopify Admin API integration."""
