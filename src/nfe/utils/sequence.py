from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock

from nfe import config as _config
from nfe.services.exceptions import FormatError

MAX_N_NF = 999_999_999


def _sequence_file() -> Path:
    return _config.get_data_dir() / "sequence.json"


def _key(env: str, model: str, serie: str | int) -> str:
    return f"{env}:{model}:{int(serie):03d}"


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during sequence read-modify-write."""
    sf = _sequence_file()
    sf.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(sf.with_suffix(".lock"))
    with lock:
        yield


def _load() -> dict[str, int]:
    sf = _sequence_file()
    if not sf.exists():
        return {}
    return json.loads(sf.read_text())


def _save(data: dict[str, int]) -> None:
    sf = _sequence_file()
    sf.parent.mkdir(parents=True, exist_ok=True)
    tmp = sf.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, indent=2, sort_keys=True))
    os.replace(tmp, sf)


def _check(value: int) -> int:
    if not 0 <= value <= MAX_N_NF:
        raise FormatError(f"nNF: fora do intervalo 0..{MAX_N_NF}", "nNF", value)
    return value


def current_n_nf(serie: str | int = 1, env: str = "homologacao", model: str = "55") -> int:
    with _locked():
        return _load().get(_key(env, model, serie), 0)


def next_n_nf(serie: str | int = 1, env: str = "homologacao", model: str = "55") -> int:
    """Reserve and persist the next nNF for the (env, model, serie) counter."""
    key = _key(env, model, serie)
    with _locked():
        data = _load()
        value = _check(data.get(key, 0) + 1)
        data[key] = value
        _save(data)
        return value


def peek_next_n_nf(serie: str | int = 1, env: str = "homologacao", model: str = "55") -> int:
    """Return the next sequence number without persisting it."""
    with _locked():
        return _check(_load().get(_key(env, model, serie), 0) + 1)


def set_n_nf(value: int, serie: str | int = 1, env: str = "homologacao", model: str = "55") -> None:
    _check(value)
    with _locked():
        data = _load()
        data[_key(env, model, serie)] = value
        _save(data)
