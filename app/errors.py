"""Error taxonomy of the analysis pipeline.

Only ``ProviderError`` is recovered locally (the analyzer falls back to its
heuristic). The others are fatal to an ``analyze_recording`` call and reach
the caller.
"""


class AnalysisError(Exception):
    status_code = 500


class NotFound(AnalysisError):
    status_code = 404


class ProviderError(AnalysisError):
    status_code = 502


class ProviderUnavailable(ProviderError):
    """No completion provider is configured (heuristic-only mode)."""


class AnalysisCancelled(AnalysisError):
    status_code = 504


class PersistenceError(AnalysisError):
    status_code = 500
