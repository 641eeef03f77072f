from ._dispatch import DeferredQueue, InlineExecutor
from ._encoding import (
    encode_json_body,
    encode_percent_body,
    encode_url,
    percent_encode,
    percent_encoded_query_string,
)
from ._logs import setup_logging

__all__ = [
    "DeferredQueue",
    "InlineExecutor",
    "encode_json_body",
    "encode_percent_body",
    "encode_url",
    "percent_encode",
    "percent_encoded_query_string",
    "setup_logging",
]
