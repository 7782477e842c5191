"""Companion dashboard for Hexo sites: posts, site config, themes and deployment."""

__version__ = "0.1.0"
