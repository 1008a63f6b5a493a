"""Plan Store Module

This module provides:
1. In-memory storage of generated plans (one document per plan)
2. Optional persistence of each plan to a JSON file
3. Listing a user's active plans, newest first
"""
import json
import logging
import uuid
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path

from config.settings import PLAN_STORAGE_PATH
from core.exceptions import PersistenceError
from models.plan import GeneratedPlan

logger = logging.getLogger(__name__)


@dataclass
class PlanRecord:
    """A stored plan, as written to disk and returned by listings."""
    id: str
    userId: str
    name: str
    workoutPlan: Dict[str, Any]
    dietPlan: Dict[str, Any]
    isActive: bool = True
    createdAt: str = field(default_factory=lambda: datetime.now().isoformat())
    updatedAt: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PlanRecord":
        return cls(**data)


class PlanStore:
    """
    In-memory plan store with optional JSON-file persistence.

    Features:
    - Insert a plan document and get its generated id back
    - Get one plan, list a user's active plans (newest first)
    - Deactivate a plan
    """

    def __init__(self, persist: bool = True, storage_dir: Optional[Path] = None):
        self._plans: Dict[str, PlanRecord] = {}
        self._persist = persist
        self._dir = Path(storage_dir) if storage_dir else PLAN_STORAGE_PATH

        if persist:
            self._dir.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    # === Core Operations ===

    def insert(self, user_id: str, name: str, plan: GeneratedPlan) -> str:
        """Store a plan document and return its generated id."""
        now = datetime.now().isoformat()
        record = PlanRecord(
            id=uuid.uuid4().hex,
            userId=user_id,
            name=name,
            workoutPlan=plan.workout_plan.to_dict(),
            dietPlan=plan.diet_plan.to_dict(),
            createdAt=now,
            updatedAt=now,
        )

        if self._persist:
            self._save_plan(record)
        self._plans[record.id] = record

        logger.info(f"Saved plan {record.id} for user {user_id}")
        return record.id

    def get(self, plan_id: str) -> Optional[PlanRecord]:
        return self._plans.get(plan_id)

    def list_active(self, user_id: str) -> List[PlanRecord]:
        """Active plans for a user, sorted by createdAt descending."""
        plans = [p for p in self._plans.values() if p.userId == user_id and p.isActive]
        return sorted(plans, key=lambda p: p.createdAt, reverse=True)

    def deactivate(self, plan_id: str) -> bool:
        record = self._plans.get(plan_id)
        if record is None:
            return False
        record.isActive = False
        record.updatedAt = datetime.now().isoformat()
        if self._persist:
            self._save_plan(record)
        logger.info(f"Deactivated plan {plan_id}")
        return True

    # === Persistence ===

    def _save_plan(self, record: PlanRecord):
        path = self._dir / f"{record.id}.plan.json"
        try:
            with open(path, "w") as f:
                json.dump(record.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write plan {record.id}: {e}")
            raise PersistenceError("Failed to save fitness plan", details={"plan_id": record.id}) from e

    def _load_from_disk(self):
        for path in self._dir.glob("*.plan.json"):
            try:
                with open(path) as f:
                    record = PlanRecord.from_dict(json.load(f))
                    self._plans[record.id] = record
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Failed to load plan {path}: {e}")

        logger.info(f"Loaded {len(self._plans)} plans from {self._dir}")


# Global plan store instance
_plan_store = None

def get_plan_store() -> PlanStore:
    """Get or create the global plan store."""
    global _plan_store
    if _plan_store is None:
        _plan_store = PlanStore(persist=True)
    return _plan_store
