"""Append-only tables synced incrementally by ``created_at``."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text

from incident_mirror.models.base import Base


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(String, primary_key=True)
    incident_number = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    html_url = Column(Text, nullable=True)
    incident_key = Column(Text, nullable=True)
    service_id = Column(String, nullable=True)
    escalation_policy_id = Column(String, nullable=True)
    trigger_type = Column(String, nullable=True)
    trigger_summary_subject = Column(Text, nullable=True)
    trigger_summary_description = Column(Text, nullable=True)


class LogEntry(Base):
    __tablename__ = "log_entries"

    id = Column(String, primary_key=True)
    type = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    incident_id = Column(String, nullable=True, index=True)
    agent_type = Column(String, nullable=True)
    agent_id = Column(String, nullable=True)
    channel_type = Column(String, nullable=True)
    user_id = Column(String, nullable=True)
    notification_type = Column(String, nullable=True)
    assigned_user_id = Column(String, nullable=True)
