#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import math
from dataclasses import dataclass
from typing import Optional

from price_series import GRANULARITIES, InvalidInputError


@dataclass(frozen=True)
class VideoConfig:
    contribution_amount: float
    initial_balance: float = 0.0
    chart_duration: float = 20.0
    ending_duration: float = 3.0
    frame_rate: int = 30
    display_granularity: str = "monthly"
    title: str = ""
    width: int = 1080
    height: int = 1920
    dpi: int = 100
    lang: str = "en"
    logo_path: Optional[str] = None

    def validate(self) -> "VideoConfig":
        for name in ("contribution_amount", "initial_balance"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise InvalidInputError(f"{name} must be >= 0 (got {value!r})")
        for name in ("chart_duration", "ending_duration"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise InvalidInputError(f"{name} must be > 0 seconds (got {value!r})")
        if int(self.frame_rate) != self.frame_rate or self.frame_rate <= 0:
            raise InvalidInputError(f"frame_rate must be a positive integer (got {self.frame_rate!r})")
        if self.display_granularity not in GRANULARITIES:
            raise InvalidInputError(
                f"display_granularity must be one of: {', '.join(GRANULARITIES)}"
            )
        return self

    @property
    def total_frames(self) -> int:
        return math.floor(self.chart_duration * self.frame_rate) + math.floor(
            self.ending_duration * self.frame_rate
        )
