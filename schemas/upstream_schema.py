# -------------------------------------------------------------------
# schemas/upstream_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **upstream payload schemas** the pipeline
# reads from the lookup service (PokeAPI) and the rewriting service
# (FunTranslations).
#
# Only the fields the pipeline consumes are declared; everything else
# the upstreams send is ignored (extra="ignore").
#
# Lookup service:
#   GET /pokemon/<name>       -> {"species": {"url": "..."}}
#   GET <species url>         -> {"flavor_text_entries": [
#                                    {"flavor_text": "...",
#                                     "language": {"name": "en"},
#                                     "version": {"name": "ruby"}}, ...]}
#
# Rewriting service:
#   GET /translate/shakespeare.json?text=...
#                             -> {"contents": {"translated": "..."}}
#
# WHAT THIS FILE IS NOT FOR
# ------------------------
# This module does NOT:
# - Call upstream services
# - Select a description or decide fallbacks
# - Translate validation failures into PipelineError
#
# It strictly defines **upstream response typing**.
# -------------------------------------------------------------------

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class NamedResource(_UpstreamModel):
    name: str


class SpeciesReference(_UpstreamModel):
    url: str


class PokemonRecord(_UpstreamModel):
    """Record returned by the lookup service for a single creature."""

    species: SpeciesReference


class FlavorTextEntry(_UpstreamModel):
    """One localized description of a creature from one game version."""

    flavor_text: str
    language: NamedResource
    version: NamedResource


class SpeciesRecord(_UpstreamModel):
    flavor_text_entries: List[FlavorTextEntry] = Field(default_factory=list)


class TranslationContents(_UpstreamModel):
    translated: Optional[str] = None


class TranslationResponse(_UpstreamModel):
    """Rewriting service payload; `contents.translated` may be missing."""

    contents: Optional[TranslationContents] = None

    @property
    def translated(self) -> Optional[str]:
        return self.contents.translated if self.contents else None
