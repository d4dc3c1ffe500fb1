# herbtrace/core/transitions.py

from typing import Optional

from herbtrace.errors import ValidationError

# step type -> batch phase. No predecessor check: any mapped step may fire.
PHASE_BY_STEP = {
    "RECEIPT": "RECEIPT_DONE",
    "DRYING": "DRYING_DONE",
    "GRINDING": "GRINDING_DONE",
}

GATE_PASS = "PASS"
GATE_FAIL = "FAIL"

CHAIN_STATUSES = ("READY", "IN_PROGRESS", "COMPLETE")


def next_phase(step_type: Optional[str]) -> Optional[str]:
    """None means "leave the batch phase alone"."""
    if not step_type:
        return None
    return PHASE_BY_STEP.get(step_type.strip().upper())


def evaluate_gate(moisture_pct: float, pesticide_pass: bool, threshold_pct: float) -> str:
    if moisture_pct <= threshold_pct and pesticide_pass is True:
        return GATE_PASS
    return GATE_FAIL


def normalize_chain_status(value: Optional[str], required: bool = False) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError("Invalid status. Use READY | IN_PROGRESS | COMPLETE")
        return None
    status = str(value).strip().upper()
    if status not in CHAIN_STATUSES:
        raise ValidationError("Invalid status. Use READY | IN_PROGRESS | COMPLETE")
    return status
