"""stylemotion: cascade, variables and keyframe animation over a virtual clock."""

__version__ = "0.1.0"

from stylemotion.config import EngineConfig  # noqa: E402
from stylemotion.engine import StyleEngine  # noqa: E402
from stylemotion.errors import (  # noqa: E402
    CyclicVariableError,
    InvalidCurveError,
    MissingLayoutWarning,
    StyleEngineError,
    UndefinedVariableError,
    UnsupportedInterpolationError,
)
from stylemotion.values import format_value, parse_value  # noqa: E402

__all__ = [
    "__version__",
    "EngineConfig",
    "StyleEngine",
    "StyleEngineError",
    "CyclicVariableError",
    "UndefinedVariableError",
    "UnsupportedInterpolationError",
    "InvalidCurveError",
    "MissingLayoutWarning",
    "parse_value",
    "format_value",
]
