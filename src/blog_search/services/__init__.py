from blog_search.services.search import SearchService, create_search_service

__all__ = ["SearchService", "create_search_service"]
