"""Pydantic model for the CMU-compatible keystroke timing record.

The field order below is the column order of the CMU keystroke-dynamics
benchmark (``DSL-StrongPasswordData``): subject, sessionIndex, rep, then for
each key of ``.tie5Roanl`` + Return its hold time followed by the
down-down and up-down latency to the next key.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Target characters as typed, and their labels in the benchmark namespace.
TARGET_CHARS: tuple[str, ...] = (".", "t", "i", "e", "5", "R", "o", "a", "n", "l", "\n")
TARGET_LABELS: tuple[str, ...] = (
    "period", "t", "i", "e", "five", "Shift.r", "o", "a", "n", "l", "Return",
)


def _ms(alias: str) -> Any:
    return Field(..., alias=alias)


class TimingRecord(BaseModel):
    """One repetition of the fixed phrase, in milliseconds.

    ``H.<k>`` is the hold time of key *k*, ``DD.<a>.<b>`` the key-down to
    key-down latency and ``UD.<a>.<b>`` the key-up to key-down latency.
    Unknown or missing keys fail validation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    subject: int
    session_index: int = Field(..., alias="sessionIndex")
    rep: int

    h_period: float = _ms("H.period")
    dd_period_t: float = _ms("DD.period.t")
    ud_period_t: float = _ms("UD.period.t")

    h_t: float = _ms("H.t")
    dd_t_i: float = _ms("DD.t.i")
    ud_t_i: float = _ms("UD.t.i")

    h_i: float = _ms("H.i")
    dd_i_e: float = _ms("DD.i.e")
    ud_i_e: float = _ms("UD.i.e")

    h_e: float = _ms("H.e")
    dd_e_five: float = _ms("DD.e.five")
    ud_e_five: float = _ms("UD.e.five")

    h_five: float = _ms("H.five")
    dd_five_shift_r: float = _ms("DD.five.Shift.r")
    ud_five_shift_r: float = _ms("UD.five.Shift.r")

    h_shift_r: float = _ms("H.Shift.r")
    dd_shift_r_o: float = _ms("DD.Shift.r.o")
    ud_shift_r_o: float = _ms("UD.Shift.r.o")

    h_o: float = _ms("H.o")
    dd_o_a: float = _ms("DD.o.a")
    ud_o_a: float = _ms("UD.o.a")

    h_a: float = _ms("H.a")
    dd_a_n: float = _ms("DD.a.n")
    ud_a_n: float = _ms("UD.a.n")

    h_n: float = _ms("H.n")
    dd_n_l: float = _ms("DD.n.l")
    ud_n_l: float = _ms("UD.n.l")

    h_l: float = _ms("H.l")
    dd_l_return: float = _ms("DD.l.Return")
    ud_l_return: float = _ms("UD.l.Return")

    h_return: float = _ms("H.Return")

    def to_row(self) -> dict[str, float]:
        """Flat dict keyed by benchmark column names, in column order."""
        return self.model_dump(by_alias=True)

    @classmethod
    def columns(cls) -> list[str]:
        return [f.alias or name for name, f in cls.model_fields.items()]
