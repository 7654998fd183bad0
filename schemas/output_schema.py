# -------------------------------------------------------------------
# schemas/output_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **public success response schema** of the
# Pokespeare API.
#
# The contract is exactly two string fields:
#   {"name": "<normalized key>", "description": "<final text>"}
#
# It is serialized pretty-printed (2-space indent) at the API boundary
# with content-type "application/json; charset=UTF-8".
#
# Error responses are NOT modelled here: they are plain text
# ("Error <code>: <reason phrase>"), see status_normalizer.py.
#
# Any change here impacts the public API contract.
# -------------------------------------------------------------------

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreatureDescription(BaseModel):
    """Final record produced by the pipeline for one request."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., description="Case-folded creature name used for lookup and caching")
    description: str = Field(..., description="Rewritten description, or the original one when rewriting was skipped")

    def to_pretty_json(self) -> str:
        return self.model_dump_json(indent=2)
