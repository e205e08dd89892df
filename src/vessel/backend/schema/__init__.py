"""Pydantic schemas: REST envelopes, workspace views, bridge messages."""

from .response import BaseResponse, ErrorResponse, SuccessResponse

__all__ = ['BaseResponse', 'ErrorResponse', 'SuccessResponse']
