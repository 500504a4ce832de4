"""
Vintner Configuration
Centralized settings for the application
"""

import os

from vintner.constants import FilePaths, SkewCurve

# Logging
LOG_LEVEL = os.getenv("VINTNER_LOG_LEVEL", "INFO").upper()

# Wine batch persistence (CSV file backing the batch store)
BATCH_STORE_PATH = os.getenv("VINTNER_BATCH_STORE", FilePaths.BATCHES_CSV)

# Skew curve applied to the combined wine score
DEFAULT_SKEW_CURVE = SkewCurve(os.getenv("VINTNER_SKEW_CURVE", SkewCurve.STEPPED.value))

# Rule tables (JSON); the built-in tables are used when the file is missing
RULES_PATH = os.getenv("VINTNER_RULES", FilePaths.RULES_JSON)
