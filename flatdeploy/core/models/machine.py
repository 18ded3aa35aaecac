"""
Machine models — the cluster transport's response contract.

Every fan-out operation returns one MachineResult per targeted machine.
A result either carries a payload or a per-machine error string; the
transport never raises for a single machine's failure.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class MachineInfo(BaseModel):
    """A cluster member as reported by ``list_machines``."""

    id: str
    name: str
    address: str = ""


class MachineResult(BaseModel):
    """Outcome of one operation on one machine."""

    machine: str             # machine id or name, as the transport knows it
    error: str = ""
    payload: Any = None

    @property
    def ok(self) -> bool:
        return not self.error

    @classmethod
    def success(cls, machine: str, payload: Any = None) -> MachineResult:
        return cls(machine=machine, payload=payload)

    @classmethod
    def failure(cls, machine: str, error: str) -> MachineResult:
        return cls(machine=machine, error=error)
