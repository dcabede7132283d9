"""StoryFeed - cached, paginated facade over the Hacker News API."""

__version__ = "0.1.0"
