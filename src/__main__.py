"""Allow ``python -m hexo_buddy``."""

from hexo_buddy.cli import app

app()
