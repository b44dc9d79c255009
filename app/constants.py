"""
Service-wide constants
"""

SERVICE_NAME = "leave-reconciliation-backend"

# Reconciliation thresholds (absolute currency units / percent)
DISCREPANCY_THRESHOLD = 100
REVIEW_VARIANCE_THRESHOLD = 500
REVIEW_PERCENT_THRESHOLD = 5

MONTH_ID_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
