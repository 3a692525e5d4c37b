# verisync/schemas/source.py
"""
Source definition schema.

A source is one side of a comparison: a host reachable over SSH, a local
directory, or a previously captured manifest file.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_PROJECTS_ROOT = "~/.claude/projects"
DEFAULT_HISTORY_PATH = "~/.claude/history.jsonl"

SourceKind = Literal["ssh", "local", "file"]


class SourceConfig(BaseModel):
    """
    Connection and location details for one log source.

    :ivar name: Human-friendly label used in reports and error messages.
    :ivar kind: How the manifest is obtained (ssh, local or file).
    :ivar host: Hostname or IP address (ssh only).
    :ivar username: Remote login user (ssh only).
    :ivar ssh_port: SSH port (ssh only).
    :ivar private_key_path: Key passed to ``ssh -i`` when set.
    :ivar root: Directory holding the session logs, or the manifest file for kind=file.
    :ivar history_path: Location of the history index used by ``verisync history``.
    :ivar id_field: JSON field holding the per-line identifier.
    """

    name: str = Field(..., description="Label used in reports")
    kind: SourceKind = Field(default="ssh", description="Fetch mechanism")
    host: Optional[str] = Field(default=None, description="Hostname or IP address")
    username: Optional[str] = Field(default=None, description="Remote login user")
    ssh_port: int = Field(default=22, description="SSH port")
    private_key_path: Optional[str] = Field(default=None, description="SSH private key")
    root: str = Field(default=DEFAULT_PROJECTS_ROOT, description="Session log root")
    history_path: str = Field(
        default=DEFAULT_HISTORY_PATH, description="history.jsonl location"
    )
    id_field: str = Field(default="uuid", description="Identifier field per log line")

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _require_host_for_ssh(self) -> "SourceConfig":
        if self.kind == "ssh" and not self.host:
            raise ValueError(f"Source '{self.name}' is kind 'ssh' but has no host.")
        return self

    @property
    def target(self) -> str:
        """A short description of where this source lives."""
        if self.kind == "ssh":
            user = f"{self.username}@" if self.username else ""
            return f"{user}{self.host}:{self.ssh_port}"
        return self.root
