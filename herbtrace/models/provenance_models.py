# herbtrace/models/provenance_models.py
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional


@dataclass
class BatchBlock:
    species_scientific: str = ""
    collector_id_masked: str = ""
    date_utc: str = ""
    status_phase: str = ""
    quality_gate: str = "PENDING"
    chain_status: Optional[str] = None


@dataclass
class CollectionBlock:
    scientific_name: str = ""
    collector_id_masked: str = ""
    geo: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None
    ai: Dict[str, Any] = field(default_factory=dict)
    status: str = ""
    violations: List[Any] = field(default_factory=list)


@dataclass
class ProcessingBlock:
    step_type: str = ""
    status: str = ""
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    post_step_metrics: Dict[str, Any] = field(default_factory=dict)
    notes: str = ""


@dataclass
class LabResultBlock:
    moisture_pct: Optional[float] = None
    pesticide_pass: Optional[bool] = None
    gate: str = ""
    pdf_url: Optional[str] = None
    evaluated_at: Optional[str] = None


@dataclass
class ProvenanceBundle:
    batch: BatchBlock = field(default_factory=BatchBlock)
    collection: List[CollectionBlock] = field(default_factory=list)
    processing_steps: List[ProcessingBlock] = field(default_factory=list)
    lab_results: List[LabResultBlock] = field(default_factory=list)
    ui: Dict[str, Any] = field(default_factory=dict)
    # placeholder until the chain index can be queried
    on_chain: Dict[str, Any] = field(default_factory=lambda: {
        "verified": False,
        "notes": "On-chain verification placeholder. Integrate with chain index and compare hashes.",
    })

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
