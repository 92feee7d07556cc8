from .detector import ArbConfig, ArbitrageDetector, detect
from .evaluator import ProfitEvaluator
from .optimizer import SizeOptimizer, SizeResult
from .signal import LegOrder, ProfitResult

__all__ = [
    "ArbConfig",
    "ArbitrageDetector",
    "detect",
    "ProfitEvaluator",
    "SizeOptimizer",
    "SizeResult",
    "LegOrder",
    "ProfitResult",
]
