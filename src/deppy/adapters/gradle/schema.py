"""Gradle services response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class GradleVersion(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    version: str
    build_time: str | None = Field(default=None, alias="buildTime")
    snapshot: bool = False
    nightly: bool = False
    release_nightly: bool = Field(default=False, alias="releaseNightly")
    broken: bool = False
    rc_for: str = Field(default="", alias="rcFor")
    milestone_for: str = Field(default="", alias="milestoneFor")

    @property
    def is_prerelease(self) -> bool:
        return (
            self.snapshot
            or self.nightly
            or self.release_nightly
            or bool(self.rc_for)
            or bool(self.milestone_for)
        )


GRADLE_VERSIONS = TypeAdapter(list[GradleVersion])
