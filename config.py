"""Runtime configuration for one digest run, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

_DEFAULT_PAST_DAY_RANGE = 4
# More than ~200 papers in one digest tends to hit email length limits.
_DEFAULT_PAPERS_PER_DIGEST = 12
_DEFAULT_SENDER = "scholaralerts-noreply@google.com"


@dataclass(frozen=True, slots=True)
class DigestConfig:
    """Settings for the collaborator layer; the core only needs page_size."""

    past_day_range: int = _DEFAULT_PAST_DAY_RANGE
    page_size: int = _DEFAULT_PAPERS_PER_DIGEST
    sender: str = _DEFAULT_SENDER
    output_dir: str = "digests"
    csv_path: str = "papers_digest.csv"
    compact: bool = False

    @classmethod
    def from_env(cls) -> DigestConfig:
        """Build a config from environment variables (call load_dotenv() first).

        Raises ValueError on non-integer or out-of-range numeric settings.
        """
        config = cls(
            past_day_range=_env_int("PAST_DAY_RANGE", _DEFAULT_PAST_DAY_RANGE),
            page_size=_env_int("PAPERS_PER_MERGED_EMAIL", _DEFAULT_PAPERS_PER_DIGEST),
            sender=os.getenv("SENDER_EMAIL", _DEFAULT_SENDER),
            output_dir=os.getenv("DIGEST_OUTPUT_DIR", "digests"),
            csv_path=os.getenv("DIGEST_CSV_PATH", "papers_digest.csv"),
            compact=_env_bool("DIGEST_COMPACT", False),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"PAPERS_PER_MERGED_EMAIL must be at least 1, got {self.page_size}")
        if self.past_day_range < 0:
            raise ValueError(f"PAST_DAY_RANGE must not be negative, got {self.past_day_range}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}
