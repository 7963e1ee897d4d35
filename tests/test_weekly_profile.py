"""
Tests para el perfil semanal de ocupación
"""

from datetime import datetime
from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from cyberdemand.models.records import UsageRecord, DemandLevel, WeeklyDemandEntry
from cyberdemand.prediction.weekly_profile import (
    WeeklyDemandProfile, classify_demand, weekly_stats, day_average
)


def session_at(start: datetime, pc_id='PC-1', duration=60):
    return UsageRecord(
        pc_id=pc_id, user_id='user-1', duration_minutes=duration,
        hour_of_day=start.hour, timestamp=start
    )


# 2024-03-18 y 2024-03-25 son lunes
MONDAY = datetime(2024, 3, 18)
NEXT_MONDAY = datetime(2024, 3, 25)


class TestClassifyDemand:

    def test_levels(self):
        assert classify_demand(71) == DemandLevel.ALTA
        assert classify_demand(70) == DemandLevel.MEDIA
        assert classify_demand(41) == DemandLevel.MEDIA
        assert classify_demand(40) == DemandLevel.BAJA
        assert classify_demand(0) == DemandLevel.BAJA


class TestWeeklyDemandProfile:

    def test_covers_week_and_opening_hours(self):
        profile = WeeklyDemandProfile(pc_count=20).fit([])
        entries = profile.entries()

        assert len(entries) == 7 * 16
        assert entries[0].day == 'Lunes' and entries[0].hour == 8
        assert entries[-1].day == 'Domingo' and entries[-1].hour == 23
        assert all(e.predicted_usage == 0 for e in entries)

    def test_usage_percentage(self):
        records = [session_at(MONDAY.replace(hour=10, minute=m)) for m in range(10)]
        profile = WeeklyDemandProfile(pc_count=20).fit(records)

        entry = [e for e in profile.entries(day='Lunes') if e.hour == 10][0]
        assert entry.predicted_usage == 50
        assert entry.level == DemandLevel.MEDIA

    def test_usage_divides_by_observed_dates(self):
        records = [session_at(MONDAY.replace(hour=10, minute=m)) for m in range(10)]
        records.append(session_at(NEXT_MONDAY.replace(hour=9)))
        profile = WeeklyDemandProfile(pc_count=20).fit(records)

        by_hour = {e.hour: e.predicted_usage for e in profile.entries(day='Lunes')}
        assert by_hour[10] == 25
        assert by_hour[9] == 3  # 100 / 40 = 2.5

    def test_usage_is_capped_at_100(self):
        records = [session_at(MONDAY.replace(hour=18, minute=m)) for m in range(30)]
        profile = WeeklyDemandProfile(pc_count=20).fit(records)

        entry = [e for e in profile.entries(day='Lunes') if e.hour == 18][0]
        assert entry.predicted_usage == 100
        assert entry.level == DemandLevel.ALTA

    def test_offset_timestamp_uses_local_weekday(self):
        # 23:30 del lunes en -05:00 es martes en UTC
        start = datetime.fromisoformat('2024-03-18T23:30:00-05:00')
        profile = WeeklyDemandProfile(pc_count=20).fit([session_at(start)])

        monday = {e.hour: e.predicted_usage for e in profile.entries(day='Lunes')}
        tuesday = {e.hour: e.predicted_usage for e in profile.entries(day='Martes')}
        assert monday[23] == 5
        assert all(usage == 0 for usage in tuesday.values())

    def test_records_without_timestamp_are_ignored(self):
        records = [UsageRecord(pc_id='PC-1', user_id='user-1', duration_minutes=60, hour_of_day=10)]
        profile = WeeklyDemandProfile().fit(records)
        assert all(e.predicted_usage == 0 for e in profile.entries())

    def test_entries_before_fit_raises(self):
        with pytest.raises(RuntimeError):
            WeeklyDemandProfile().entries()

    def test_invalid_day(self):
        profile = WeeklyDemandProfile().fit([])
        with pytest.raises(ValueError):
            profile.entries(day='Funday')

    def test_invalid_pc_count(self):
        with pytest.raises(ValueError):
            WeeklyDemandProfile(pc_count=-1)


class TestWeeklyStats:

    def test_empty(self):
        assert weekly_stats([]) == {'weekly_peak': 0, 'avg_weekly': 0, 'low_demand_hours': 0}

    def test_stats(self):
        entries = [
            WeeklyDemandEntry(day='Lunes', hour=10, predicted_usage=80, level=DemandLevel.ALTA),
            WeeklyDemandEntry(day='Lunes', hour=11, predicted_usage=20, level=DemandLevel.BAJA),
            WeeklyDemandEntry(day='Martes', hour=10, predicted_usage=30, level=DemandLevel.BAJA),
        ]
        stats = weekly_stats(entries)

        assert stats['weekly_peak'] == 80
        assert stats['avg_weekly'] == 43
        assert stats['low_demand_hours'] == 0  # 2 franjas / 7 días


class TestDayAverage:

    def test_average_of_one_day(self):
        entries = [
            WeeklyDemandEntry(day='Lunes', hour=10, predicted_usage=80, level=DemandLevel.ALTA),
            WeeklyDemandEntry(day='Lunes', hour=11, predicted_usage=25, level=DemandLevel.BAJA),
            WeeklyDemandEntry(day='Martes', hour=10, predicted_usage=30, level=DemandLevel.BAJA),
        ]

        # (80 + 25) / 2 = 52.5
        assert day_average(entries, 'Lunes') == 53
        assert day_average(entries, 'Martes') == 30
        assert day_average(entries, 'Jueves') == 0

    def test_from_profile(self):
        records = [session_at(MONDAY.replace(hour=18, minute=m)) for m in (0, 10, 20, 30, 40)]
        profile = WeeklyDemandProfile(pc_count=10).fit(records)

        # 50% en la franja de las 18 y 0% en las otras 15
        assert day_average(profile.entries(), 'Lunes') == 3
