"""Runtime settings for the directive interpreter.

Values come from keyword arguments or from ``DOMSCRIPT_*`` environment
variables via :meth:`Settings.from_env`. Invalid values raise pydantic's
``ValidationError``.
"""

from __future__ import annotations
import os
from typing import Any, Dict, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

_DISABLED = ("", "0", "none", "off", "unbounded")

ENV_FIELDS = {
    "DOMSCRIPT_MAX_LOOP_ITERATIONS": "max_loop_iterations",
    "DOMSCRIPT_LOOP_TIMEOUT": "loop_timeout_s",
    "DOMSCRIPT_MAX_CALL_DEPTH": "max_call_depth",
    "DOMSCRIPT_PUBLISH_GLOBALS": "publish_globals",
    "DOMSCRIPT_OBSERVE": "observe_mutations",
    "DOMSCRIPT_AUTO_APPROVE": "auto_approve",
    "DOMSCRIPT_LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_loop_iterations: Optional[int] = Field(default=10_000, ge=1, description="Per-loop iteration budget, None for unbounded")
    loop_timeout_s: Optional[float] = Field(default=None, gt=0, description="Per-loop wall clock budget in seconds")
    max_call_depth: int = Field(default=64, ge=1, description="Nested function invocation limit")
    publish_globals: bool = Field(default=True, description="Mirror bindings into the window binding space")
    observe_mutations: bool = Field(default=True, description="Run directives inserted after start()")
    auto_approve: bool = Field(default=False, description="Console host answers confirm() with yes")
    log_level: str = Field(default="INFO")

    @field_validator("max_loop_iterations", "loop_timeout_s", mode="before")
    @classmethod
    def coerce_disabled(cls, v: Any) -> Any:
        """Accept 0/none/off as 'no budget'."""
        if isinstance(v, str) and v.strip().lower() in _DISABLED:
            return None
        if v == 0:
            return None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> str:
        return str(v).strip().upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "Settings":
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for key, fld in ENV_FIELDS.items():
            if key in env:
                data[fld] = env[key]
        data.update(overrides)
        return cls.model_validate(data)
