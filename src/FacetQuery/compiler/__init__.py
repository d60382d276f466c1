"""Raw query compiler: text to criteria and back."""

from __future__ import annotations

from FacetQuery.compiler.parser import (
    count_unparsed_terms,
    is_valid_raw_query,
    parse_raw_query,
    parse_token,
)
from FacetQuery.compiler.serializer import generate_raw_query, render_criterion
from FacetQuery.compiler.share import (
    ShareState,
    build_share_params,
    encode_share_params,
    parse_share_params,
)
from FacetQuery.compiler.tokenizer import tokenize

__all__ = [
    "ShareState",
    "build_share_params",
    "count_unparsed_terms",
    "encode_share_params",
    "generate_raw_query",
    "is_valid_raw_query",
    "parse_raw_query",
    "parse_share_params",
    "parse_token",
    "render_criterion",
    "tokenize",
]
