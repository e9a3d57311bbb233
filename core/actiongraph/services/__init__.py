"""Core services for actiongraph."""

from .expression import ExpressionError, evaluate

__all__ = [
	"ExpressionError",
	"evaluate",
]
