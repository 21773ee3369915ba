"""Nia search API client and response schemas."""

from chromagent.app.nia.client import NiaClient, drop_none, encode_id
from chromagent.app.nia import schemas

__all__ = ["NiaClient", "drop_none", "encode_id", "schemas"]
