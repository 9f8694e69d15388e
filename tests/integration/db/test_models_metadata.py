from __future__ import annotations

import clientpulse.models  # noqa: F401
from clientpulse.models import Base


def test_model_metadata_contains_engine_tables():
    expected = {"agents", "clients", "client_interactions", "client_alerts"}
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_enum_columns_store_values(session, make_agent):
    agent = make_agent(name="Stored")
    raw = session.connection().exec_driver_sql("SELECT status FROM agents WHERE id = ?", (agent.id,)).scalar()
    assert raw == "online"
