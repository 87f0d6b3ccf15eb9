#!/usr/bin/env python3
"""
Run the missed-day sweep (meant for a daily scheduler shortly after midnight).

Usage:
    python scripts/run_missed_day_job.py run
    python scripts/run_missed_day_job.py run --today 2025-01-30
    python scripts/run_missed_day_job.py recalculate USER_ID HABIT_ID --category-id CAT
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.core.config import get_settings
from src.core.database import close_database, get_session_factory, init_database
from src.core.services import Services, get_service, setup_services
from src.domain.errors import AggregateUpdateFailure
from src.utils.dates import parse_iso_date
from src.utils.logging import setup_logging

app = typer.Typer(help="Streak maintenance jobs")


async def _bootstrap(database_url: Optional[str]) -> None:
    await init_database(database_url)
    setup_services(await get_session_factory())


@app.command()
def run(
    today: Optional[str] = typer.Option(
        None, help="Treat this YYYY-MM-DD as today (yesterday is swept)"
    ),
    database_url: Optional[str] = typer.Option(None, help="Override DATABASE_URL"),
):
    """Recalculate stats for every due habit that got no action yesterday."""
    settings = get_settings()
    setup_logging(settings.log_level, log_to_file=False)

    try:
        today_date = parse_iso_date(today) if today else None
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(2)

    async def main():
        await _bootstrap(database_url)
        try:
            job = get_service(Services.MISSED_DAY_JOB)
            report = await job.run(today=today_date)
            typer.echo(
                f"✅ Swept {report.day.isoformat()}: {report.users_checked} user(s), "
                f"{report.recalculations} recalculation(s)"
            )
        except AggregateUpdateFailure as e:
            typer.echo(f"❌ Sweep finished with failures for: {', '.join(e.failed_scopes)}")
            raise typer.Exit(1)
        finally:
            await close_database()

    asyncio.run(main())


@app.command()
def recalculate(
    user_id: str = typer.Argument(..., help="Owner of the habit"),
    habit_id: str = typer.Argument(..., help="Habit whose scopes are rebuilt"),
    category_id: str = typer.Option("", help="Category of the habit"),
    database_url: Optional[str] = typer.Option(None, help="Override DATABASE_URL"),
):
    """Rebuild habit, category and user stats for one habit."""
    settings = get_settings()
    setup_logging(settings.log_level, log_to_file=False)

    async def main():
        await _bootstrap(database_url)
        try:
            orchestrator = get_service(Services.STATS)
            await orchestrator.on_missed_day(user_id, habit_id, category_id)
            streak = await orchestrator.get_current_streak(user_id, "HABIT", habit_id)
            typer.echo(f"✅ Habit {habit_id} current streak: {streak}")
        except AggregateUpdateFailure as e:
            typer.echo(f"❌ {e}")
            raise typer.Exit(1)
        finally:
            await close_database()

    asyncio.run(main())


if __name__ == "__main__":
    app()
