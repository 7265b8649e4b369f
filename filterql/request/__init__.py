"""filterQL request layer: HTTP query-string parsing."""
from filterql.request.params import ParsedRequest, apply_reserved_keys, parse_query_params

__all__ = ["ParsedRequest", "apply_reserved_keys", "parse_query_params"]
