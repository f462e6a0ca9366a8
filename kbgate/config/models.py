from pydantic import BaseModel, Field
from typing import Literal


class ConstitutionConfig(BaseModel):
    path: str | None = None


class AuditConfig(BaseModel):
    enabled: bool = True
    db_path: str = ".kbgate/audit.db"


class RulesConfig(BaseModel):
    ai_actors: list[str] = Field(
        default_factory=lambda: ["cursor_agent", "asd_ais", "guard_engine"]
    )
    destructive_keywords: list[str] = Field(
        default_factory=lambda: ["delete", "remove", "destroy", "purge", "truncate", "drop"]
    )


class GatewayConfig(BaseModel):
    constitution: ConstitutionConfig = Field(default_factory=ConstitutionConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
