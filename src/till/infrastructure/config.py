"""Runtime settings, read from the environment (and a ``.env`` file)."""

from __future__ import annotations

import os
from typing import Mapping

from dotenv import load_dotenv

from till.application.receipt_dispatcher import ReceiptMode
from till.infrastructure.printer.escpos_printer import DEFAULT_PORT_PATTERNS

DEFAULT_DATABASE_URL = "sqlite:///data/till.db"


def _split_csv(raw: str | None, *, default: list[str]) -> list[str]:
    parts = [p.strip() for p in (raw or "").split(",")]
    return [p for p in parts if p] or default


def _as_bool(raw: str | None, default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(raw: str | None, default: int) -> int:
    try:
        return int((raw or "").strip())
    except ValueError:
        return default


def _as_float(raw: str | None, default: float) -> float:
    try:
        value = float((raw or "").strip())
    except ValueError:
        return default
    return value if value > 0 else default


def _as_mode(raw: str | None) -> ReceiptMode:
    try:
        return ReceiptMode((raw or "").strip().lower())
    except ValueError:
        return ReceiptMode.WAIT


class Settings:

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        env = os.environ if environ is None else environ
        self.database_url = (env.get("TILL_DATABASE_URL") or "").strip() or DEFAULT_DATABASE_URL
        self.log_level = (env.get("TILL_LOG_LEVEL") or "INFO").strip().upper()
        self.printer_enabled = _as_bool(env.get("TILL_PRINTER_ENABLED"), True)
        self.printer_ports = _split_csv(
            env.get("TILL_PRINTER_PORTS"), default=list(DEFAULT_PORT_PATTERNS)
        )
        self.printer_baudrate = _as_int(env.get("TILL_PRINTER_BAUDRATE"), 9600)
        # Bounds both printer I/O and how long a close waits for its receipt.
        self.printer_timeout = _as_float(env.get("TILL_PRINTER_TIMEOUT"), 5.0)
        self.receipt_mode = _as_mode(env.get("TILL_RECEIPT_MODE"))

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Settings:
        load_dotenv(dotenv_path)
        return cls()
