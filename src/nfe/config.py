from __future__ import annotations

import os
from datetime import timedelta, timezone
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

APP_NAME = "emissor-nfe"


def _resolve_config_dir_for_dotenv() -> Path | None:
    """Resolve config dir for .env loading without depending on env vars from .env itself.

    Returns None if only platformdirs would resolve and the directory does not exist yet.
    """
    from_env = os.environ.get("NFE_CONFIG_DIR")
    if from_env:
        return Path(from_env)
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / "config"
    if candidate.is_dir():
        return candidate
    pd = Path(platformdirs.user_config_dir(APP_NAME))
    if pd.is_dir():
        return pd
    return None


# Load .env: cwd first (highest priority), then config dir (won't override)
load_dotenv()
_cfg_dir = _resolve_config_dir_for_dotenv()
if _cfg_dir is not None:
    load_dotenv(_cfg_dir / ".env")


def _resolve_dir(env_var: str, default_subdir: str, kind: str) -> Path:
    """Resolve a directory from env var, repo layout, or platform default.

    Priority: 1) env var, 2) dev repo layout, 3) platformdirs user directory.
    """
    from_env = os.environ.get(env_var)
    if from_env:
        return Path(from_env)
    # Development layout: src/nfe/config.py -> ../../.. = project root
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / default_subdir
    if candidate.is_dir():
        return candidate
    if kind == "config":
        return Path(platformdirs.user_config_dir(APP_NAME))
    return Path(platformdirs.user_data_dir(APP_NAME))


def get_config_dir() -> Path:
    """Resolve config directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("NFE_CONFIG_DIR", "config", kind="config")


def get_data_dir() -> Path:
    """Resolve data directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("NFE_DATA_DIR", "data", kind="data")


NFE_NS = "http://www.portalfiscal.inf.br/nfe"
LAYOUT_VERSION = "4.00"
KEY_PREFIX = "NFe"

BRT = timezone(timedelta(hours=-3))

TP_AMB = {"producao": "1", "homologacao": "2"}

MODELS = {"nfe": "55", "nfce": "65"}
MODEL_NFE = MODELS["nfe"]
MODEL_NFCE = MODELS["nfce"]

GTIN_SENTINEL = "SEM GTIN"

# IBGE state codes
STATE_CODES = {
    "AC": "12", "AL": "17", "AP": "16", "AM": "13", "BA": "29",
    "CE": "23", "DF": "53", "ES": "32", "GO": "52", "MA": "21",
    "MT": "51", "MS": "50", "MG": "31", "PA": "15", "PB": "25",
    "PR": "41", "PE": "26", "PI": "22", "RJ": "33", "RN": "24",
    "RS": "43", "RO": "11", "RR": "14", "SC": "42", "SP": "35",
    "SE": "28", "TO": "27",
}


def state_code(value: str) -> str | None:
    """Return the IBGE code for a UF abbreviation or an IBGE code, None if unknown."""
    value = value.strip().upper()
    if value in STATE_CODES:
        return STATE_CODES[value]
    if value in STATE_CODES.values():
        return value
    return None


# --- YAML config ---


def load_yaml(path: Path) -> dict:
    """Load and parse a YAML file, returning the top-level dict."""
    return yaml.safe_load(path.read_text()) or {}


_ENV_OVERRIDES = {
    "NFE_AMBIENTE": "environment",
    "NFE_MODELO": "model",
    "NFE_CHECK_GTIN": "check_gtin",
    "NFE_REMOVE_ACCENTS": "remove_accents",
    "NFE_ROUND_VALUES": "round_values",
    "NFE_AUTO_CALCULATE": "auto_calculate",
}


def load_builder_config() -> dict:
    """Load builder settings from config/builder.yaml, overlaid by NFE_* env vars.

    A missing file yields an empty dict; env vars always win.
    """
    path = get_config_dir() / "builder.yaml"
    data = load_yaml(path) if path.is_file() else {}
    for env_var, key in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[key] = value
    return data
