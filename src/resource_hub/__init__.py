"""Resource catalog core kept in sync with a Meilisearch index."""

__version__ = "0.3.0"
