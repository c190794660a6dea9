from .aggregator import AnalysisResult, ScoreAggregator, Verdict
from .analyzer import DeepfakeAnalyzer
from .config import AnalyzerConfig
from .progress import ProgressSimulator, ProgressStep

__all__ = [
    "AnalysisResult", "ScoreAggregator", "Verdict",
    "DeepfakeAnalyzer", "AnalyzerConfig",
    "ProgressSimulator", "ProgressStep",
]
