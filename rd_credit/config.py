import os
import pathlib

# Example in .env:
# RDCREDIT_TRACE_DIR=/var/lib/rd-credit/traces
TRACE_DIR = os.environ.get(
    "RDCREDIT_TRACE_DIR",
    str(pathlib.Path(__file__).resolve().parents[1] / "traces"),
)

# Applied percentage above which an item is flagged as an audit risk (soft limit).
AUDIT_RISK_THRESHOLD = float(os.environ.get("RDCREDIT_AUDIT_RISK_THRESHOLD", "45"))

# Supply cost as a fraction of labor cost (wages + contractor payments).
SUPPLY_LABOR_RATIO_LIMIT = float(os.environ.get("RDCREDIT_SUPPLY_LABOR_RATIO_LIMIT", "0.35"))
