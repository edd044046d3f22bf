from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel


class CounterexampleDTO(BaseModel):
    tag: str
    left: str
    right: str


class ObligationDTO(BaseModel):
    name: str
    degree: str
    legs_checked: int
    ok: bool
    counterexample: Optional[CounterexampleDTO] = None


class CoherenceReportDTO(BaseModel):
    category: str
    index_set: str
    objects: List[str]
    obligations: List[ObligationDTO]
    ok: bool


class ComponentDTO(BaseModel):
    label: str
    degree: str
    component: str
    summands: Dict[str, str] = {}


class CheckRequest(BaseModel):
    category: str = "finset"
    index_set: str = "nat"
    degrees: Optional[List[int]] = None
    proof_mode: bool = True
    order_policy: str = "sort"
    gas_limit: int = 5_000_000
