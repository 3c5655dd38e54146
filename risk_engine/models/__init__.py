"""
Statistical models behind the symptom risk engine.

Classifiers (decision tree, forest, sequence scorer, logistic baseline) feed
the :class:`RiskEstimator`; the correlation analyzer, forecaster and
early-warning generator each work directly on the observation history.
"""

from .correlation import CorrelationAnalyzer, mutual_information, pearson, spearman
from .decision_tree import DecisionTree, TreeNode
from .early_warning import EarlyWarningGenerator, RiskFactorScanner, warnings_from_forecast
from .feedback import apply_feedback
from .forecaster import Forecaster, analyze_trend, decompose, forecast
from .forest import RandomForest
from .logistic import LogisticRegression
from .risk_estimator import RiskEstimator, SymptomModel
from .sequence import SequencePredictor

__all__ = [
    "CorrelationAnalyzer",
    "DecisionTree",
    "EarlyWarningGenerator",
    "Forecaster",
    "LogisticRegression",
    "RandomForest",
    "RiskEstimator",
    "RiskFactorScanner",
    "SequencePredictor",
    "SymptomModel",
    "TreeNode",
    "analyze_trend",
    "apply_feedback",
    "decompose",
    "forecast",
    "mutual_information",
    "pearson",
    "spearman",
    "warnings_from_forecast",
]
