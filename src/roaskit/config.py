import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from roaskit import industry_data
from roaskit.errors import InputValidationError
from roaskit.utils.logs import report
from roaskit.utils.paths import resolve_config_path

logger = report.settings(__file__)

DEFAULT_ENV_PATH = Path("config/roaskit/.env")

_DEFAULT_FIELDS = ("margin", "return_rate", "payment_fee", "ltv_multiplier", "shipping_cost")


@dataclass(frozen=True)
class IndustryDefaults:
	margin: float
	return_rate: float
	payment_fee: float
	ltv_multiplier: float
	shipping_cost: float


@dataclass(frozen=True)
class IndustryTable:
	"""Industry key → defaults mapping handed explicitly to every engine call."""
	defaults: Mapping[str, IndustryDefaults]
	labels: Mapping[str, str] = field(default_factory=dict)

	def canonical(self, industry: str) -> str:
		key = str(industry).strip().lower()
		key = industry_data.ALIASES.get(key, key)
		if key not in self.defaults:
			raise InputValidationError(
				"industry",
				f"Unknown industry '{industry}' (expected one of: {', '.join(sorted(self.defaults))})",
				industry,
			)
		return key

	def get(self, industry: str) -> IndustryDefaults:
		return self.defaults[self.canonical(industry)]

	def label(self, industry: str) -> str:
		key = self.canonical(industry)
		return self.labels.get(key, key)


@dataclass(frozen=True)
class EngineSettings:
	currency: str = "SEK"
	desired_margin_percent: float = 20.0
	min_revenue_percent: float = 80.0
	search_tolerance: float = 100.0
	search_max_iter: int = 100
	log_level: str = "INFO"
	industry_table_path: Optional[Path] = None


def _defaults_from_mapping(values: Mapping[str, Any], base: Optional[IndustryDefaults] = None) -> IndustryDefaults:
	merged: Dict[str, float] = {}
	for name in _DEFAULT_FIELDS:
		if name in values and values[name] is not None:
			merged[name] = float(values[name])
		elif base is not None:
			merged[name] = float(getattr(base, name))
		else:
			raise InputValidationError(name, f"Industry defaults missing '{name}'")
	return IndustryDefaults(**merged)


def builtin_industry_table() -> IndustryTable:
	return IndustryTable(
		defaults={k: _defaults_from_mapping(v) for k, v in industry_data.INDUSTRY_DEFAULTS.items()},
		labels=dict(industry_data.INDUSTRY_LABELS),
	)


def load_industry_table(path: Optional[Path] = None) -> IndustryTable:
	"""Built-in table, optionally overridden by a YAML file.

	The YAML maps industry keys to (partial) defaults; a ``label`` entry sets
	the display label. Unknown keys add new industries and must then supply
	every field.
	"""
	table = builtin_industry_table()
	if path is None:
		return table
	p = resolve_config_path(path)
	raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
	if not isinstance(raw, dict):
		raise InputValidationError("industry_table", f"{p} must contain a mapping of industry → defaults")

	defaults = dict(table.defaults)
	labels = dict(table.labels)
	for key, values in raw.items():
		key = str(key).strip().lower()
		key = industry_data.ALIASES.get(key, key)
		values = values or {}
		defaults[key] = _defaults_from_mapping(values, defaults.get(key))
		if values.get("label"):
			labels[key] = str(values["label"])
	logger.debug("Loaded %d industry overrides from %s", len(raw), p)
	return IndustryTable(defaults=defaults, labels=labels)


def _env_float(name: str, default: float) -> float:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	try:
		return float(raw.replace(",", "."))
	except ValueError:
		raise InputValidationError(name, f"{name} must be numeric (got '{raw}')", raw) from None


def load_settings(env_path: Path = DEFAULT_ENV_PATH) -> EngineSettings:
	"""Load engine settings from env or optional .env file.
	Order of precedence: process env > .env file > defaults.
	"""
	p = resolve_config_path(env_path)
	if p.exists():
		load_dotenv(p, override=False)
	table_path = os.getenv("ROASKIT_INDUSTRY_TABLE", "").strip()
	return EngineSettings(
		currency=os.getenv("ROASKIT_CURRENCY", "SEK").strip() or "SEK",
		desired_margin_percent=_env_float("ROASKIT_DESIRED_MARGIN", 20.0),
		min_revenue_percent=_env_float("ROASKIT_MIN_REVENUE_PERCENT", 80.0),
		search_tolerance=_env_float("ROASKIT_SEARCH_TOLERANCE", 100.0),
		search_max_iter=int(_env_float("ROASKIT_SEARCH_MAX_ITER", 100)),
		log_level=os.getenv("ROASKIT_LOG_LEVEL", "INFO").strip().upper() or "INFO",
		industry_table_path=Path(table_path) if table_path else None,
	)
