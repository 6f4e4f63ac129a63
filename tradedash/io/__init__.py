"""Backend access: HTTP client and payload schemas."""

from .backend import BackendClient, clean_params
from .schema import decode_list, decode_model

__all__ = ["BackendClient", "clean_params", "decode_list", "decode_model"]
