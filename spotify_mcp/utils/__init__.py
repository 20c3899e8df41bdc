from .pagination import Page, PageStream

__all__ = ["Page", "PageStream"]
