from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from coursegen.core.database import JSONType, Base


class WorkflowRun(Base):
  __tablename__ = "workflow_runs"

  run_id: Mapped[str] = mapped_column(String, primary_key=True)
  workflow: Mapped[str] = mapped_column(String, nullable=False, index=True)
  event_name: Mapped[str] = mapped_column(String, nullable=False)
  payload_json: Mapped[dict] = mapped_column(JSONType, nullable=False)
  status: Mapped[str] = mapped_column(String, nullable=False, index=True)
  result_json: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
  error_json: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
  logs_json: Mapped[list | None] = mapped_column(JSONType, nullable=True)
  attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  created_at: Mapped[str] = mapped_column(String, nullable=False)
  updated_at: Mapped[str] = mapped_column(String, nullable=False)
  completed_at: Mapped[str | None] = mapped_column(String, nullable=True, index=True)


class StepCheckpoint(Base):
  __tablename__ = "step_checkpoints"
  __table_args__ = (UniqueConstraint("run_id", "step_name", name="ux_step_checkpoints_run_step"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  run_id: Mapped[str] = mapped_column(ForeignKey("workflow_runs.run_id", ondelete="CASCADE"), nullable=False, index=True)
  step_name: Mapped[str] = mapped_column(String, nullable=False)
  state: Mapped[str] = mapped_column(String, nullable=False)
  result_json: Mapped[Any] = mapped_column(JSONType, nullable=True)
  attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
