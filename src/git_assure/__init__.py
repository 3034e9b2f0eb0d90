"""git-assure — sustainability and security risk scoring for GitHub repositories.

Aggregates repository metadata, contributor and release activity, and
dependency vulnerability/staleness data into a weighted risk score and a
markdown report.
"""

from git_assure.analyzer import Analyzer, analyze
from git_assure.identity import IdentityError, parse_repository
from git_assure.models import AnalysisResult, RepositoryIdentity, RiskFactor

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "Analyzer",
    "IdentityError",
    "RepositoryIdentity",
    "RiskFactor",
    "analyze",
    "parse_repository",
]
