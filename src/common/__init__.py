"""
Shared code for the survey proxy Lambdas: settings, HubSpot and survey API
clients, payload composition and the pipeline that ties them together.
"""

import sys
import os

# Handlers are deployed flat under /var/task alongside this package
if os.getenv("AWS_LAMBDA_FUNCTION_NAME"):
    sys.path.insert(0, "/var/task")

__all__ = [
    "base_handler",
    "config",
    "exceptions",
    "field_mapping",
    "hubspot_client",
    "models",
    "payload_composer",
    "pipeline",
    "reconciliation",
    "sanitizers",
    "survey_api_client",
]
