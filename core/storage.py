"""Read-only athlete/program access used by the builder.

The real store lives outside this package; the builder only needs the
shape below. ``InMemoryDataSource`` backs the API and the tests.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Protocol

from core.models import AthleteRecord, ProgramRecord


class ProgramDataSource(Protocol):
    def get_athlete(self, athlete_id: str) -> Optional[AthleteRecord]: ...

    def list_athletes(self) -> list[AthleteRecord]: ...

    def list_programs(self, athlete_id: Optional[str] = None) -> list[ProgramRecord]: ...


class InMemoryDataSource:
    def __init__(
        self,
        athletes: Iterable[AthleteRecord | dict[str, Any]] = (),
        programs: Iterable[ProgramRecord | dict[str, Any]] = (),
    ):
        self._athletes: dict[str, AthleteRecord] = {}
        self._programs: dict[str, ProgramRecord] = {}
        for athlete in athletes:
            self.add_athlete(athlete)
        for program in programs:
            self.add_program(program)

    def add_athlete(self, athlete: AthleteRecord | dict[str, Any]) -> AthleteRecord:
        record = athlete if isinstance(athlete, AthleteRecord) else AthleteRecord.from_dict(athlete)
        self._athletes[record.id] = record
        return record

    def add_program(self, program: ProgramRecord | dict[str, Any]) -> ProgramRecord:
        record = program if isinstance(program, ProgramRecord) else ProgramRecord.from_dict(program)
        self._programs[record.id] = record
        return record

    def get_athlete(self, athlete_id: str) -> Optional[AthleteRecord]:
        return self._athletes.get(str(athlete_id))

    def list_athletes(self) -> list[AthleteRecord]:
        return sorted(self._athletes.values(), key=lambda a: a.name)

    def list_programs(self, athlete_id: Optional[str] = None) -> list[ProgramRecord]:
        rows = list(self._programs.values())
        if athlete_id is not None:
            rows = [p for p in rows if p.athlete_id == str(athlete_id)]
        return sorted(rows, key=lambda p: p.start_date)
