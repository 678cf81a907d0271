from .relay import create_router, parse_query, render_result

__all__ = ["create_router", "parse_query", "render_result"]
