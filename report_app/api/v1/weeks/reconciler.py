"""
Week task-set reconciliation.

The week edit form always submits the complete list of recurring-task rows for
the week, so saving replaces the whole set: every existing WeekTaskProgress row
of the week is deleted and the submitted entries are inserted as new rows.
Row ids are therefore not stable across saves; nothing may hold on to a
progress row id past the next save of its week.

replace_task_set only stages the writes on the session. The caller owns the
transaction and must commit or roll back.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Sequence
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.core.models import WeekTaskProgress
from report_app.core.progress import completed_at_for

from .schemas import TaskProgressEntry

logger = logging.getLogger(__name__)


def build_progress_rows(week_id: UUID, entries: Sequence[TaskProgressEntry], now: datetime) -> List[WeekTaskProgress]:
    return [
        WeekTaskProgress(
            id=uuid.uuid4(),
            week_id=week_id,
            master_task_id=entry.master_task_id,
            order_number=entry.order_number,
            result=entry.result,
            time_period=entry.time_period,
            progress=entry.progress,
            next_week_plan=entry.next_week_plan,
            is_important=entry.is_important,
            completed_at=completed_at_for(entry.progress, now),
            created_at=now,
        )
        for entry in entries
    ]


async def replace_task_set(
    db: AsyncSession,
    week_id: UUID,
    entries: Sequence[TaskProgressEntry],
    now: datetime,
) -> List[UUID]:
    """Replace all progress rows of the week with `entries`. Returns the new row ids in submission order."""
    result = await db.execute(
        delete(WeekTaskProgress)
        .where(WeekTaskProgress.week_id == week_id)
        .execution_options(synchronize_session="fetch")
    )
    rows = build_progress_rows(week_id, entries, now)
    db.add_all(rows)
    await db.flush()
    logger.info("Week %s: replaced %d progress row(s) with %d", week_id, result.rowcount, len(rows))
    return [r.id for r in rows]
