"""ESC/POS receipt printer reached over a serial or USB line port.

Discovery walks a list of device globs and takes the first port that
opens and accepts the ESC/POS initialise command.
"""

from __future__ import annotations

import glob
import logging
from dataclasses import dataclass
from typing import BinaryIO, Callable, Sequence

import serial

from till.domain.model.value_objects import Money
from till.domain.service.receipt import (
    Align,
    PrinterError,
    PrinterNotFoundError,
    ReceiptLine,
    ReceiptPrinter,
    ReceiptRow,
    layout,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT_PATTERNS = (
    "/dev/ttyUSB*",
    "/dev/ttyACM*",
    "/dev/usb/lp*",
    "/dev/serial/by-id/*",
)

ESC = b"\x1b"
GS = b"\x1d"

INIT = ESC + b"@"
LINE_SPACING_DEFAULT = ESC + b"2"
ALIGN = {Align.LEFT: ESC + b"a\x00", Align.CENTER: ESC + b"a\x01"}
BOLD_ON = ESC + b"E\x01"
BOLD_OFF = ESC + b"E\x00"
CUT = GS + b"V\x00"


def feed(lines: int) -> bytes:
    return ESC + b"d" + bytes([lines])


def encode(rows: Sequence[ReceiptRow]) -> bytes:
    """Turn laid-out receipt rows into an ESC/POS byte stream."""
    out = bytearray(INIT + LINE_SPACING_DEFAULT)
    for row in rows:
        out += ALIGN[row.align]
        out += BOLD_ON if row.bold else BOLD_OFF
        out += row.text.encode("cp437", errors="replace") + b"\n"
    out += BOLD_OFF + feed(6) + CUT
    return bytes(out)


@dataclass
class PrinterHandle:
    port: str
    stream: BinaryIO


class EscPosSerialPrinter(ReceiptPrinter):

    def __init__(
        self,
        port_patterns: Sequence[str] = DEFAULT_PORT_PATTERNS,
        baudrate: int = 9600,
        timeout: float = 5.0,
        opener: Callable[[str], BinaryIO] | None = None,
    ) -> None:
        self._port_patterns = tuple(port_patterns)
        self._baudrate = baudrate
        self._timeout = timeout
        self._opener = opener or self._open_port

    # --- ReceiptPrinter interface ---------------------------------------------

    def discover_printer(self) -> PrinterHandle:
        for pattern in self._port_patterns:
            for path in sorted(glob.glob(pattern)):
                logger.debug("Probing for receipt printer on %s", path)
                handle = self._probe(path)
                if handle is not None:
                    logger.info("Found receipt printer on %s", path)
                    return handle
        raise PrinterNotFoundError("No ESC/POS printer found on serial ports")

    def print_receipt(
        self,
        handle: PrinterHandle,
        lines: Sequence[ReceiptLine],
        paid_amount: Money,
        change: Money,
    ) -> None:
        payload = encode(layout(lines, paid_amount, change))
        try:
            handle.stream.write(payload)
            handle.stream.flush()
        except (serial.SerialException, OSError) as exc:
            raise PrinterError(f"Printing on {handle.port} failed: {exc}") from exc
        finally:
            handle.stream.close()

    # --- Port helpers ---------------------------------------------------------

    def _probe(self, path: str) -> PrinterHandle | None:
        try:
            stream = self._opener(path)
        except (serial.SerialException, OSError) as exc:
            logger.debug("Cannot open %s: %s", path, exc)
            return None
        try:
            stream.write(INIT)
            stream.flush()
        except (serial.SerialException, OSError) as exc:
            logger.debug("No ESC/POS response on %s: %s", path, exc)
            stream.close()
            return None
        return PrinterHandle(port=path, stream=stream)

    def _open_port(self, path: str) -> BinaryIO:
        if path.startswith("/dev/usb/lp"):
            # USB printer class devices are plain character devices.
            return open(path, "wb", buffering=0)
        return serial.Serial(
            port=path,
            baudrate=self._baudrate,
            timeout=self._timeout,
            write_timeout=self._timeout,
        )
