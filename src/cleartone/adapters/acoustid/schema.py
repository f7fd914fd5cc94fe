"""AcoustID v2 lookup response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AcoustIdBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AcoustIdRecording(AcoustIdBaseModel):
    id: str
    title: str | None = None


class AcoustIdResult(AcoustIdBaseModel):
    id: str
    score: float = Field(ge=0.0, le=1.0)
    recordings: list[AcoustIdRecording] = Field(default_factory=list[AcoustIdRecording])


class AcoustIdErrorDetail(AcoustIdBaseModel):
    code: int
    message: str


class AcoustIdLookupResponse(AcoustIdBaseModel):
    status: Literal["ok", "error"]
    results: list[AcoustIdResult] = Field(default_factory=list[AcoustIdResult])
    error: AcoustIdErrorDetail | None = None

    def identifiers(self, *, min_score: float = 0.0) -> frozenset[str]:
        """Recording MBIDs of sufficiently scored results, or track ids when unlinked."""

        found: set[str] = set()
        for result in self.results:
            if result.score < min_score:
                continue
            if result.recordings:
                found.update(recording.id for recording in result.recordings)
            else:
                found.add(result.id)
        return frozenset(found)
