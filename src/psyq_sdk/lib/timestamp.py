"""
Packed Creation Timestamps
==========================

LIB directory entries carry a 32-bit creation stamp in the MS-DOS style
bit-packed layout. The low 16 bits hold the date and the high 16 bits
the time:

    bits 31-27  hour        (0-23)
    bits 26-21  minute      (0-59)
    bits 20-16  second / 2  (0-29)
    bits 15-9   year - 1980 (0-127)
    bits  8-5   month       (1-12)
    bits  4-0   day         (1-31)

Seconds are stored at two-second resolution, so packing rounds down to
an even second. The stamp carries no time zone.

The packed value is kept as-is and exposed through field accessors;
archives written by the legacy tools may hold values that are not real
calendar dates, and those must survive a round trip unchanged.

Example
-------
>>> stamp = PackedTimestamp(0x813320AF)
>>> stamp.format()
'15-05-96 16:09:38'
>>> PackedTimestamp.from_fields(1996, 5, 15, 16, 9, 38).value == 0x813320AF
True
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


EPOCH_YEAR = 1980


@dataclass(frozen=True)
class PackedTimestamp:
    """A 32-bit packed date/time value."""
    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFFFFFFFF:
            raise ValueError(f"timestamp out of 32-bit range: {self.value}")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_parts(cls, date: int, time: int) -> "PackedTimestamp":
        """Combine a packed 16-bit date and a packed 16-bit time."""
        return cls(((time & 0xFFFF) << 16) | (date & 0xFFFF))

    @classmethod
    def from_fields(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
    ) -> "PackedTimestamp":
        """
        Pack calendar fields.

        Raises:
            ValueError: If a field does not fit the packed layout
        """
        if not EPOCH_YEAR <= year <= EPOCH_YEAR + 127:
            raise ValueError(f"year {year} outside {EPOCH_YEAR}-{EPOCH_YEAR + 127}")
        if not 1 <= month <= 12:
            raise ValueError(f"invalid month: {month}")
        if not 1 <= day <= 31:
            raise ValueError(f"invalid day: {day}")
        if not 0 <= hour <= 23:
            raise ValueError(f"invalid hour: {hour}")
        if not 0 <= minute <= 59:
            raise ValueError(f"invalid minute: {minute}")
        if not 0 <= second <= 59:
            raise ValueError(f"invalid second: {second}")

        date = ((year - EPOCH_YEAR) << 9) | (month << 5) | day
        time = (hour << 11) | (minute << 5) | (second // 2)
        return cls.from_parts(date, time)

    @classmethod
    def from_datetime(cls, moment: datetime) -> "PackedTimestamp":
        return cls.from_fields(moment.year, moment.month, moment.day,
                               moment.hour, moment.minute, moment.second)

    @classmethod
    def now(cls) -> "PackedTimestamp":
        """The current local time, packed."""
        return cls.from_datetime(datetime.now())

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def date(self) -> int:
        return self.value & 0xFFFF

    @property
    def time(self) -> int:
        return self.value >> 16

    @property
    def year(self) -> int:
        return ((self.date >> 9) & 0x7F) + EPOCH_YEAR

    @property
    def month(self) -> int:
        return (self.date >> 5) & 0x0F

    @property
    def day(self) -> int:
        return self.date & 0x1F

    @property
    def hour(self) -> int:
        return (self.time >> 11) & 0x1F

    @property
    def minute(self) -> int:
        return (self.time >> 5) & 0x3F

    @property
    def second(self) -> int:
        return (self.time & 0x1F) * 2

    def to_datetime(self) -> Optional[datetime]:
        """The stamp as a naive datetime, or None if it is not a real date."""
        try:
            return datetime(self.year, self.month, self.day,
                            self.hour, self.minute, self.second)
        except ValueError:
            return None

    def is_valid(self) -> bool:
        return self.to_datetime() is not None

    def format_date(self) -> str:
        return f"{self.day:02d}-{self.month:02d}-{self.year % 100:02d}"

    def format_time(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"

    def format(self) -> str:
        """Render as ``DD-MM-YY HH:MM:SS``, the vendor listing format."""
        return f"{self.format_date()} {self.format_time()}"

    def __str__(self) -> str:
        return self.format()
