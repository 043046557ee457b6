"""
samaj/models/common.py — Base types of the membership domain.
"""

from pydantic import BaseModel


class SamajBase(BaseModel):
    """Base pydantic model for request/response schemas."""

    model_config = {"str_strip_whitespace": True}
