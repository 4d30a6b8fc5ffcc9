"""Pydantic schemas for the sync agent."""

from s6_agent.schemas.file_ref import FileRef

__all__ = ["FileRef"]
