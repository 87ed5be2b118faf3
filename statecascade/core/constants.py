"""
StateCascade Constants

Attribute names and markers read from the external store.
"""

# ==================== Record Attributes ====================

STATE_ATTRIBUTE = "statecode"
STATUS_REASON_ATTRIBUTE = "statuscode"
MODIFIED_ON_ATTRIBUTE = "modifiedon"

# Columns requested for every fetched record (besides the primary id)
RECORD_COLUMNS = (STATE_ATTRIBUTE, STATUS_REASON_ATTRIBUTE, MODIFIED_ON_ATTRIBUTE)

# ==================== Process Flow ====================

PROCESS_ID_ATTRIBUTE = "processid"
ACTIVE_STAGE_ATTRIBUTE = "activestageid"
STAGE_ENTITY = "processstage"
STAGE_ID_ATTRIBUTE = "processstageid"

# Step class name that moves a process flow to another stage
SET_NEXT_STAGE_STEP = "SetNextStageStep"

# ==================== Audit ====================

AUDIT_ENTITY = "audit"
AUDIT_ORDER_ATTRIBUTE = "createdon"

# ==================== Naming ====================

# Custom record types are named "<prefix>_<name>"
PREFIX_SEPARATOR = "_"
