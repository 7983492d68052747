"""Exit codes for the wiskess CLI.

- 0: Run completed and every wisker output is present
- 1: Run completed with validation gaps
- 2: Configuration error (bad config, dates or missing required artefact)
- 3: Evidence root not found
- 130: Interrupted by the user
"""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_VALIDATION_GAPS = 1
EXIT_CONFIG_ERROR = 2
EXIT_MISSING_EVIDENCE = 3
EXIT_INTERRUPTED = 130
