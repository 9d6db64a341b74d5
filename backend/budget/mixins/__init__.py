# budget/mixins/__init__.py
from .service_exception_handler import ServiceExceptionHandlerMixin
from .space_context import SpaceContextMixin

__all__ = [
    "ServiceExceptionHandlerMixin",
    "SpaceContextMixin",
]
