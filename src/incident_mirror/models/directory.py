"""Directory tables: services, escalation policies, schedules and users.

Every table here is full-replace: its contents always equal the latest
complete fetch. Association tables use a synthetic composite id such as
``{rule_id}_{target_id}`` so they can be keyed by a single string column.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, String, Text

from incident_mirror.models.base import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=True)
    status = Column(String, nullable=True)
    type = Column(String, nullable=True)


class EscalationPolicy(Base):
    __tablename__ = "escalation_policies"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=True)
    num_loops = Column(Integer, nullable=True)


class EscalationRule(Base):
    __tablename__ = "escalation_rules"

    id = Column(String, primary_key=True)
    escalation_policy_id = Column(String, nullable=True, index=True)
    escalation_delay_in_minutes = Column(Integer, nullable=True)
    # 1-based position within the owning policy, in fetch order.
    level_index = Column(Integer, nullable=False)


class EscalationRuleUser(Base):
    __tablename__ = "escalation_rule_users"

    id = Column(String, primary_key=True)
    escalation_rule_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False)


class EscalationRuleSchedule(Base):
    __tablename__ = "escalation_rule_schedules"

    id = Column(String, primary_key=True)
    escalation_rule_id = Column(String, nullable=False, index=True)
    schedule_id = Column(String, nullable=False)


class Schedule(Base):
    __tablename__ = "schedules"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=True)


class UserSchedule(Base):
    __tablename__ = "user_schedule"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    schedule_id = Column(String, nullable=False, index=True)


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=True)
    email = Column(String, nullable=True)
