"""
Hooks: callables run by the dispatcher around handlers.

    before-hook   hook(ctx); raising stops the request
    after-hook    hook(ctx); ctx.response holds the response so far
"""

from .headers import SetHeaders, custom_header
from .access_log import AccessLogHook, RequestLog

__all__ = [
    "SetHeaders",
    "custom_header",
    "AccessLogHook",
    "RequestLog",
]
