from netcheck.application.use_cases.run_diagnostics_batch import BatchResult, RunDiagnosticsBatch

__all__ = [
    "BatchResult",
    "RunDiagnosticsBatch",
]
