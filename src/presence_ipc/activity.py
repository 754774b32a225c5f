"""Presence payload builder.

Usage:
    activity = (
        Activity()
        .set_state("In a match")
        .set_details("Ranked")
        .set_large_image("map_dust")
        .set_buttons([("Watch", "https://example.com/live")])
    )
    await session.set_activity(activity)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Timestamps(BaseModel):
    """Unix timestamps (seconds) bounding the activity."""

    start: int | None = None
    end: int | None = None


class Assets(BaseModel):
    """Image keys and hover texts."""

    large_image: str | None = None
    large_text: str | None = None
    small_image: str | None = None
    small_text: str | None = None


class Button(BaseModel):
    label: str
    url: str


class Activity(BaseModel):
    """Presence shown for the application.

    Setters mutate and return the model so calls can be chained.
    """

    model_config = ConfigDict(validate_assignment=True)

    state: str | None = None
    details: str | None = None
    timestamps: Timestamps | None = None
    assets: Assets = Field(default_factory=Assets)
    buttons: list[Button] = Field(default_factory=list)

    def set_state(self, state: str) -> Activity:
        self.state = state
        return self

    def set_details(self, details: str) -> Activity:
        self.details = details
        return self

    def set_timestamps(self, start: int | None = None, end: int | None = None) -> Activity:
        self.timestamps = Timestamps(start=start, end=end)
        return self

    def set_large_image(self, large_image: str) -> Activity:
        self.assets.large_image = large_image
        return self

    def set_large_text(self, large_text: str) -> Activity:
        self.assets.large_text = large_text
        return self

    def set_small_image(self, small_image: str) -> Activity:
        self.assets.small_image = small_image
        return self

    def set_small_text(self, small_text: str) -> Activity:
        self.assets.small_text = small_text
        return self

    def set_buttons(self, buttons: Iterable[tuple[str, str]]) -> Activity:
        """Append (label, url) buttons."""
        self.buttons = [*self.buttons, *(Button(label=label, url=url) for label, url in buttons)]
        return self

    def to_payload(self) -> dict[str, Any]:
        """JSON object for the ``activity`` argument of SET_ACTIVITY.

        Unset fields and an empty button list are omitted.
        """
        payload = self.model_dump(mode="json", exclude_none=True)
        if not self.buttons:
            payload.pop("buttons", None)
        return payload
