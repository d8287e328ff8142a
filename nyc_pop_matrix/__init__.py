"""nyc_pop_matrix package initializer.

Weighted sex/age/race/disability population matrices built from IPUMS
ACS microdata.  Modules include the constants, record classification,
the aggregation pipeline, CSV output and an optional plotly chart.  See
individual module docstrings for details.
"""

from .pipeline import DataUnavailable, run_pipeline

__all__ = ["DataUnavailable", "run_pipeline"]
